"""
Request authentication from a bearer access token or a refresh cookie.

Resolution order, stopping at the first decisive step:

1. A bearer access token that verifies is accepted as-is. No store access.
2. Otherwise the refresh cookie is required.
3. The refresh token must verify under the refresh secret.
4. Its digest must match a session row that has not expired. This is what
   makes logout effective against a refresh token whose signature is still good.
5. A new access token is issued for the session's user and handed back to the
   caller to surface to the client.

Expected failures never raise; they come back as an ``AuthResult`` carrying the
reason, which callers must not reveal beyond a uniform rejection.
Store outages still raise ``StoreUnavailableException``.
"""
import enum
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.services.session_store import SessionStore, session_store
from app.utils.security import digest
from app.utils.tokens import TokenCodec

logger = logging.getLogger(__name__)


class AuthFailure(str, enum.Enum):
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_TOKEN = "invalid_token"
    SESSION_NOT_FOUND = "session_not_found"
    SESSION_EXPIRED = "session_expired"


@dataclass(frozen=True)
class AuthResult:
    user_id: int | None = None
    new_access_token: str | None = None
    failure: AuthFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.user_id is not None


class Authenticator:

    def __init__(self, codec: TokenCodec, sessions: SessionStore = session_store):
        self.codec = codec
        self.sessions = sessions

    def authenticate(
        self,
        db: Session,
        bearer_token: str | None = None,
        refresh_token: str | None = None,
    ) -> AuthResult:
        if bearer_token:
            verified = self.codec.verify_access(bearer_token)
            if verified.ok:
                return AuthResult(user_id=verified.claims.subject)
            logger.debug(f"Bearer token rejected ({verified.failure.value}), trying refresh cookie")

        if not refresh_token:
            return self._fail(AuthFailure.MISSING_CREDENTIALS)

        return self.authenticate_refresh(db, refresh_token)

    def authenticate_refresh(self, db: Session, refresh_token: str | None) -> AuthResult:
        """Validate a refresh token against its session and mint a new access token."""
        if not refresh_token:
            return self._fail(AuthFailure.MISSING_CREDENTIALS)

        verified = self.codec.verify_refresh(refresh_token)
        if not verified.ok:
            logger.debug(f"Refresh token rejected: {verified.failure.value}")
            return self._fail(AuthFailure.INVALID_TOKEN)

        session = self.sessions.find_session_by_digest(db, digest(refresh_token))
        if session is None:
            return self._fail(AuthFailure.SESSION_NOT_FOUND)
        if not session.is_live(self.codec.now()):
            return self._fail(AuthFailure.SESSION_EXPIRED)

        access = self.codec.issue_access(session.user.id)
        return AuthResult(user_id=session.user.id, new_access_token=access.token)

    @staticmethod
    def _fail(reason: AuthFailure) -> AuthResult:
        logger.debug(f"Authentication failed: {reason.value}")
        return AuthResult(failure=reason)
