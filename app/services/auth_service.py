import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import commit
from app.services.authenticator import Authenticator
from app.services.session_store import SessionStore, session_store
from app.services.user_store import UserStore, user_store
from app.models.user import User
from app.utils.security import (
    digest, hash_password, verify_password, dummy_verify_password,
)
from app.utils.exceptions import (
    AlreadyExistsException, InvalidCredentialsException, UnauthenticatedException,
)
from app.utils.tokens import TokenCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str


class AuthService:
    """
    Login, registration, logout and access-token refresh.

    Refresh does not rotate the refresh token: the session row issued at
    login/registration is reused until it expires or is logged out.
    """

    def __init__(
        self,
        codec: TokenCodec,
        authenticator: Authenticator,
        users: UserStore = user_store,
        sessions: SessionStore = session_store,
    ):
        self.codec = codec
        self.authenticator = authenticator
        self.users = users
        self.sessions = sessions

    # ─── Register ─────────────────────────────────────────────────────────────
    def register(self, db: Session, name: str, email: str, password: str) -> IssuedTokens:
        if self.users.find_by_email(db, email):
            raise AlreadyExistsException("Email already registered", field="email")

        try:
            user = self.users.create(db, name=name, email=email, password_digest=hash_password(password))
            tokens = self._start_session(db, user)
            commit(db, "register")
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            db.rollback()
            logger.warning("Registration conflict on unique email")
            raise AlreadyExistsException("Email already registered", field="email")

        logger.info(f"User {user.id} registered")
        return tokens

    # ─── Login ────────────────────────────────────────────────────────────────
    def login(self, db: Session, email: str, password: str) -> IssuedTokens:
        user = self.users.find_by_email(db, email)

        if user is None:
            dummy_verify_password()
            logger.warning("Login failed: invalid credentials")
            raise InvalidCredentialsException()
        if not verify_password(password, user.password):
            logger.warning("Login failed: invalid credentials")
            raise InvalidCredentialsException()

        self.sessions.purge_expired(db, user.id, self.codec.now())
        tokens = self._start_session(db, user)
        commit(db, "login")

        logger.info(f"User {user.id} logged in")
        return tokens

    # ─── Logout ───────────────────────────────────────────────────────────────
    def logout(self, db: Session, refresh_token: str | None) -> None:
        """Revoke the session behind a refresh token. Never reveals whether it existed."""
        if not refresh_token:
            return

        removed = self.sessions.delete_sessions_by_digest(db, digest(refresh_token))
        commit(db, "logout")
        if removed:
            logger.info("Session revoked on logout")

    # ─── Refresh ──────────────────────────────────────────────────────────────
    def refresh_access(self, db: Session, refresh_token: str | None) -> str:
        result = self.authenticator.authenticate_refresh(db, refresh_token)
        if not result.ok:
            raise UnauthenticatedException()
        return result.new_access_token

    # ─── Helpers ──────────────────────────────────────────────────────────────
    def _start_session(self, db: Session, user: User) -> IssuedTokens:
        access = self.codec.issue_access(user.id)
        refresh = self.codec.issue_refresh(user.id)
        self.sessions.create_session(
            db,
            user_id=user.id,
            refresh_token_digest=digest(refresh.token),
            expires_at=refresh.expires_at,
        )
        return IssuedTokens(access_token=access.token, refresh_token=refresh.token)
