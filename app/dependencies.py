from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.services.auth_service import AuthService
from app.services.authenticator import Authenticator, AuthResult
from app.utils.exceptions import UnauthenticatedException
from app.utils.tokens import TokenCodec

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Token & Auth Services ────────────────────────────────────────────────────
# Built once per process from settings and shared across requests.
@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec(settings.token_config())


def get_authenticator(codec: TokenCodec = Depends(get_token_codec)) -> Authenticator:
    return Authenticator(codec)


def get_auth_service(
    codec: TokenCodec = Depends(get_token_codec),
    authenticator: Authenticator = Depends(get_authenticator),
) -> AuthService:
    return AuthService(codec, authenticator)


def get_refresh_cookie(request: Request) -> str | None:
    return request.cookies.get(settings.REFRESH_COOKIE_NAME)


# ─── Get Current Auth ─────────────────────────────────────────────────────────
def get_current_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    refresh_token: str | None = Depends(get_refresh_cookie),
    db: Session = Depends(get_db),
    authenticator: Authenticator = Depends(get_authenticator),
) -> AuthResult:
    """
    Resolve the caller from the bearer access token, falling back to the
    refresh cookie. Raises a uniform 401 on any failure.

    When the cookie path was taken, result.new_access_token holds a fresh
    access token the route should return to the client.
    """
    bearer = credentials.credentials if credentials else None
    result = authenticator.authenticate(db, bearer_token=bearer, refresh_token=refresh_token)
    if not result.ok:
        raise UnauthenticatedException()
    return result
