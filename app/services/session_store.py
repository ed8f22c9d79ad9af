import logging
from datetime import datetime

from sqlalchemy.orm import Session, joinedload

from app.database import store_errors
from app.models.session import UserSession

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Session rows keyed by refresh-token digest.
    Methods flush but never commit; the calling service owns the transaction.
    """

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_session(
        self, db: Session, user_id: int, refresh_token_digest: str, expires_at: datetime
    ) -> UserSession:
        with store_errors("create_session"):
            row = UserSession(
                userId=user_id,
                refreshTokenDigest=refresh_token_digest,
                expiresAt=expires_at,
            )
            db.add(row)
            db.flush()
            return row

    # ─── Find ─────────────────────────────────────────────────────────────────
    def find_session_by_digest(self, db: Session, digest: str) -> UserSession | None:
        """Exact-match lookup; the owning user is loaded in the same query."""
        with store_errors("find_session_by_digest"):
            return (
                db.query(UserSession)
                .options(joinedload(UserSession.user))
                .filter(UserSession.refreshTokenDigest == digest)
                .first()
            )

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_sessions_by_digest(self, db: Session, digest: str) -> int:
        """Idempotent: deleting nothing is success."""
        with store_errors("delete_sessions_by_digest"):
            return (
                db.query(UserSession)
                .filter(UserSession.refreshTokenDigest == digest)
                .delete(synchronize_session="fetch")
            )

    def delete_sessions_for_user(self, db: Session, user_id: int) -> int:
        with store_errors("delete_sessions_for_user"):
            return (
                db.query(UserSession)
                .filter(UserSession.userId == user_id)
                .delete(synchronize_session="fetch")
            )

    def purge_expired(self, db: Session, user_id: int, now: datetime) -> int:
        """Drop a user's sessions that are already past expiry."""
        with store_errors("purge_expired"):
            removed = (
                db.query(UserSession)
                .filter(UserSession.userId == user_id, UserSession.expiresAt <= now)
                .delete(synchronize_session="fetch")
            )
        if removed:
            logger.info(f"Purged {removed} expired session(s) for user {user_id}")
        return removed


session_store = SessionStore()
