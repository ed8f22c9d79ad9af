import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import commit, store_errors
from app.models.user import User
from app.services.session_store import SessionStore, session_store
from app.services.user_store import UserStore, user_store
from app.utils.exceptions import AlreadyExistsException, UnauthenticatedException

logger = logging.getLogger(__name__)


def _serialize_user(u: User) -> dict:
    return {
        "id":    u.id,
        "name":  u.name,
        "email": u.email,
    }


class UserService:

    def __init__(self, users: UserStore = user_store, sessions: SessionStore = session_store):
        self.users = users
        self.sessions = sessions

    def _require_user(self, db: Session, user_id: int) -> User:
        # A valid token for a deleted account is treated as no authentication at all
        u = self.users.find_by_id(db, user_id)
        if not u:
            raise UnauthenticatedException()
        return u

    # ─── Get ──────────────────────────────────────────────────────────────────
    def get_profile(self, db: Session, user_id: int) -> dict:
        return _serialize_user(self._require_user(db, user_id))

    # ─── Update ───────────────────────────────────────────────────────────────
    def update_profile(
        self, db: Session, user_id: int,
        name: str | None = None,
        email: str | None = None,
    ) -> dict:
        u = self._require_user(db, user_id)

        if email and email != u.email:
            existing = self.users.find_by_email(db, email)
            if existing and existing.id != u.id:
                raise AlreadyExistsException("Email already used by another user", field="email")

        fields = {}
        if name:  fields["name"]  = name
        if email: fields["email"] = email

        try:
            self.users.update(db, u, **fields)
            commit(db, "update profile")
        except IntegrityError:
            db.rollback()
            raise AlreadyExistsException("Email already used by another user", field="email")

        with store_errors("reload profile"):
            db.refresh(u)
        return _serialize_user(u)

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_account(self, db: Session, user_id: int) -> None:
        u = self._require_user(db, user_id)
        removed = self.sessions.delete_sessions_for_user(db, u.id)
        self.users.delete(db, u)
        commit(db, "delete account")
        logger.info(f"User {user_id} deleted with {removed} session(s)")


user_service = UserService()
