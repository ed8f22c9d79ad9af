from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.v1.auth import clear_refresh_cookie
from app.database import get_db
from app.dependencies import get_current_auth
from app.schemas.common import ErrorResponse, authenticated_response, success_response
from app.schemas.user import UserReplaceRequest, UserUpdateRequest
from app.services.authenticator import AuthResult
from app.services.user_service import user_service

router = APIRouter(prefix="/users", responses={401: {"model": ErrorResponse}})


# GET /users/me — Any authenticated user
@router.get("/me", status_code=status.HTTP_200_OK, summary="Get current user profile")
def get_me(
    db:   Session    = Depends(get_db),
    auth: AuthResult = Depends(get_current_auth),
):
    data = user_service.get_profile(db, auth.user_id)
    return authenticated_response("Profile retrieved", data, auth.new_access_token)


# PUT /users/me — Replace display name
@router.put("/me", status_code=status.HTTP_200_OK, summary="Replace current user name")
def replace_me(
    data: UserReplaceRequest,
    db:   Session    = Depends(get_db),
    auth: AuthResult = Depends(get_current_auth),
):
    result = user_service.update_profile(db, auth.user_id, name=data.name)
    return authenticated_response("Profile updated", result, auth.new_access_token)


# PATCH /users/me — Partial update of name and/or email
@router.patch("/me", status_code=status.HTTP_200_OK, summary="Update current user profile")
def update_me(
    data: UserUpdateRequest,
    db:   Session    = Depends(get_db),
    auth: AuthResult = Depends(get_current_auth),
):
    result = user_service.update_profile(
        db, auth.user_id,
        name=data.name,
        email=str(data.email) if data.email else None,
    )
    return authenticated_response("Profile updated", result, auth.new_access_token)


# DELETE /users/me — Delete account and every session it owns
@router.delete("/me", status_code=status.HTTP_200_OK, summary="Delete current user account")
def delete_me(
    response: Response,
    db:   Session    = Depends(get_db),
    auth: AuthResult = Depends(get_current_auth),
):
    user_service.delete_account(db, auth.user_id)
    clear_refresh_cookie(response)
    return success_response("Account deleted", None)
