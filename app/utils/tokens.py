"""
Signed, expiring access/refresh tokens.

Both kinds are compact HS256 JWTs carrying ``sub``, ``iat``, ``exp`` and
``jti``. The claim set does not say which kind a token is; the kind is
determined solely by the secret it was signed with, so each kind has its own
issue/verify entry points and never shares a secret with the other.
"""
import enum
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenFailure(str, enum.Enum):
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenConfig:
    access_secret: str
    refresh_secret: str
    access_expiry: timedelta = timedelta(minutes=15)
    refresh_expiry: timedelta = timedelta(days=7)
    algorithm: str = "HS256"

    def __post_init__(self):
        if not self.access_secret or not self.access_secret.strip():
            raise ValueError("ACCESS_TOKEN_SECRET must not be empty")
        if not self.refresh_secret or not self.refresh_secret.strip():
            raise ValueError("REFRESH_TOKEN_SECRET must not be empty")
        if self.access_secret == self.refresh_secret:
            raise ValueError("Access and refresh tokens must use different secrets")
        if self.access_expiry <= timedelta(0) or self.refresh_expiry <= timedelta(0):
            raise ValueError("Token expiries must be positive")

    def secret_for(self, kind: TokenKind) -> str:
        return self.access_secret if kind is TokenKind.ACCESS else self.refresh_secret

    def expiry_for(self, kind: TokenKind) -> timedelta:
        return self.access_expiry if kind is TokenKind.ACCESS else self.refresh_expiry


@dataclass(frozen=True)
class TokenClaims:
    subject: int
    token_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    token: str
    token_id: str
    expires_at: datetime


@dataclass(frozen=True)
class VerifyResult:
    claims: TokenClaims | None = None
    failure: TokenFailure | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


class TokenCodec:
    """Issues and verifies access and refresh tokens. Performs no I/O."""

    def __init__(self, config: TokenConfig, clock: Callable[[], datetime] = utcnow):
        self.config = config
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    # ─── Issue ────────────────────────────────────────────────────────────────
    def issue(self, kind: TokenKind, subject_id: int) -> IssuedToken:
        now = self._clock()
        expires_at = now + self.config.expiry_for(kind)
        token_id = secrets.token_hex(16)
        payload = {
            "sub": str(subject_id),
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": token_id,
        }
        token = jwt.encode(payload, self.config.secret_for(kind), algorithm=self.config.algorithm)
        return IssuedToken(
            token=token,
            token_id=token_id,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def issue_access(self, subject_id: int) -> IssuedToken:
        return self.issue(TokenKind.ACCESS, subject_id)

    def issue_refresh(self, subject_id: int) -> IssuedToken:
        return self.issue(TokenKind.REFRESH, subject_id)

    # ─── Verify ───────────────────────────────────────────────────────────────
    def verify(self, kind: TokenKind, token: str) -> VerifyResult:
        """
        Check signature and expiry with the secret of the given kind.

        Never raises for a bad token; the outcome carries the failure reason.
        A token is expired from the exact second of its ``exp`` claim.
        """
        if not token or not isinstance(token, str):
            return VerifyResult(failure=TokenFailure.MALFORMED)

        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            return VerifyResult(failure=TokenFailure.MALFORMED)

        try:
            payload = jwt.decode(
                token,
                self.config.secret_for(kind),
                algorithms=[self.config.algorithm],
                # Expiry is checked below against the codec clock.
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTClaimsError:
            return VerifyResult(failure=TokenFailure.MALFORMED)
        except JWTError:
            return VerifyResult(failure=TokenFailure.BAD_SIGNATURE)

        claims = self._parse_claims(payload)
        if claims is None:
            return VerifyResult(failure=TokenFailure.MALFORMED)

        if self._clock() >= claims.expires_at:
            return VerifyResult(failure=TokenFailure.EXPIRED)

        return VerifyResult(claims=claims)

    def verify_access(self, token: str) -> VerifyResult:
        return self.verify(TokenKind.ACCESS, token)

    def verify_refresh(self, token: str) -> VerifyResult:
        return self.verify(TokenKind.REFRESH, token)

    @staticmethod
    def _parse_claims(payload: dict) -> TokenClaims | None:
        sub, jti = payload.get("sub"), payload.get("jti")
        exp, iat = payload.get("exp"), payload.get("iat")
        if not isinstance(sub, str) or not sub.isdigit():
            return None
        if not isinstance(jti, str) or not jti:
            return None
        # bool is an int subclass
        if not isinstance(exp, int) or isinstance(exp, bool):
            return None
        if not isinstance(iat, int) or isinstance(iat, bool):
            return None
        return TokenClaims(
            subject=int(sub),
            token_id=jti,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
