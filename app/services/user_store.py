from sqlalchemy.orm import Session

from app.database import store_errors
from app.models.user import User


class UserStore:
    """Exact-match access to user records. Flushes, never commits."""

    def find_by_email(self, db: Session, email: str) -> User | None:
        with store_errors("find_user_by_email"):
            return db.query(User).filter(User.email == email).first()

    def find_by_id(self, db: Session, user_id: int) -> User | None:
        with store_errors("find_user_by_id"):
            return db.query(User).filter(User.id == user_id).first()

    def create(self, db: Session, name: str, email: str, password_digest: str) -> User:
        with store_errors("create_user"):
            user = User(name=name, email=email, password=password_digest)
            db.add(user)
            db.flush()  # Get user.id without committing
            return user

    def update(self, db: Session, user: User, **fields) -> User:
        with store_errors("update_user"):
            for key, value in fields.items():
                setattr(user, key, value)
            db.flush()
            return user

    def delete(self, db: Session, user: User) -> None:
        with store_errors("delete_user"):
            db.delete(user)
            db.flush()


user_store = UserStore()
