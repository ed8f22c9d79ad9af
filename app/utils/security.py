import hashlib

from passlib.context import CryptContext

# ─── Password Hashing ─────────────────────────────────────────────────────────
# argon2 is salted and memory-hard; never store passwords with a plain digest.
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password using argon2."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain-text password against an argon2 hash in constant time."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised or corrupt stored hash
        return False


def dummy_verify_password() -> None:
    """Spend the time of a real verification when there is no user to check."""
    pwd_context.dummy_verify()


# ─── Digest ───────────────────────────────────────────────────────────────────
def digest(value: bytes | str) -> str:
    """
    One-way SHA-256 hex digest.
    Refresh tokens are stored as their digest so a leaked table holds no usable token.
    """
    if isinstance(value, str):
        value = value.encode("utf-8")
    return hashlib.sha256(value).hexdigest()
