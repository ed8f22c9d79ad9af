"""Imported together so Alembic sees both tables and User.sessions resolves."""

from app.models.user import User
from app.models.session import UserSession

__all__ = [
    "User",
    "UserSession",
]
