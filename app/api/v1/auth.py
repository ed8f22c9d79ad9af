from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_auth_service, get_refresh_cookie
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, RefreshResponse
from app.schemas.common import ErrorResponse, SuccessResponse, success_response
from app.services.auth_service import AuthService, IssuedTokens

router = APIRouter(prefix="/auth", responses={401: {"model": ErrorResponse}})


def _access_expires_in() -> int:
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Deliver the refresh token where page scripts cannot read it."""
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def _token_payload(response: Response, tokens: IssuedTokens) -> dict:
    set_refresh_cookie(response, tokens.refresh_token)
    return TokenResponse(
        accessToken=tokens.access_token,
        expiresIn=_access_expires_in(),
    ).model_dump()


# ─── POST /auth/register ──────────────────────────────────────────────────────
@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
    response_model=SuccessResponse,
)
def register(
    data: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Register a new user and sign them in.
    - Email must be unique.
    - Password minimum 8 characters, 1 uppercase, 1 number.
    Returns accessToken in the body; the refresh token is set as an httpOnly cookie.
    """
    tokens = auth_service.register(db, data.name, str(data.email), data.password)
    return success_response("Registration successful", _token_payload(response, tokens))


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive access + refresh tokens",
    response_model=SuccessResponse,
)
def login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate user.
    Returns accessToken (15 min) in the body and refreshToken (7 days) as a cookie.
    """
    tokens = auth_service.login(db, str(data.email), data.password)
    return success_response("Login successful", _token_payload(response, tokens))


# ─── POST /auth/refresh ───────────────────────────────────────────────────────
@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    summary="Get new access token using the refresh cookie",
    response_model=SuccessResponse,
)
def refresh(
    refresh_token: str | None = Depends(get_refresh_cookie),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    access_token = auth_service.refresh_access(db, refresh_token)
    return success_response("Token refreshed", RefreshResponse(
        accessToken=access_token,
        expiresIn=_access_expires_in(),
    ).model_dump())


# ─── POST /auth/logout ────────────────────────────────────────────────────────
@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Revoke the refresh-token session (logout)",
    response_model=SuccessResponse,
)
def logout(
    response: Response,
    refresh_token: str | None = Depends(get_refresh_cookie),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Always succeeds, whether or not the cookie matched a live session."""
    auth_service.logout(db, refresh_token)
    clear_refresh_cookie(response)
    return success_response("Logged out successfully", None)
