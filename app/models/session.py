from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class UserSession(Base):
    """One refresh-token grant. Holds the token's digest, never the token."""

    __tablename__ = "sessions"

    id                 = Column(Integer, primary_key=True, index=True)
    userId             = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    refreshTokenDigest = Column(String(64), nullable=False, unique=True, index=True)
    expiresAt          = Column(TIMESTAMP(timezone=True), nullable=False)
    createdAt          = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="sessions")

    def is_live(self, now: datetime) -> bool:
        # SQLite hands back naive datetimes; stored values are always UTC.
        expires_at = self.expiresAt
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now < expires_at

    def __repr__(self):
        return f"<UserSession id={self.id} userId={self.userId} expiresAt={self.expiresAt}>"
