"""Account routes: signup, login, refresh, logout, profile, password reset and deletion."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse

from noter.api.deps import ensure_self, get_current_user_id
from noter.api.schemas.common import MessageOut
from noter.api.schemas.user import (
    LoginOut,
    LoginPayload,
    RefreshOut,
    ResetPasswordPayload,
    SignupPayload,
    UserEnvelope,
    UserUpdateOut,
    UserUpdatePayload,
)
from noter.core.config import settings
from noter.core.exceptions import ForbiddenError
from noter.services import auth_service as service

router = APIRouter(prefix="/user", tags=["User"])


def _set_refresh_cookie(response: Response, token: str) -> None:
    local = settings.is_local_server
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        max_age=settings.refresh_cookie_max_age_days * 24 * 60 * 60,
        httponly=True,
        secure=not local,
        samesite="lax" if local else "none",
    )


def _clear_refresh_cookie(response: Response) -> None:
    local = settings.is_local_server
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        httponly=True,
        secure=not local,
        samesite="lax" if local else "none",
    )


def _refresh_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(settings.refresh_cookie_name)


@router.post(
    "/new",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Validates the form and creates the account. Does not log in.",
)
def new_user(payload: SignupPayload):
    service.signup(name=payload.name, email_address=payload.email_address, password=payload.password)
    return MessageOut(message="Sign up successful")


@router.post(
    "/authenticate",
    response_model=LoginOut,
    summary="Log in",
    description="Returns an access token and sets the HTTP-only refresh cookie.",
)
def authenticate(payload: LoginPayload, response: Response):
    res = service.authenticate(email_address=payload.email_address, password=payload.password)
    _set_refresh_cookie(response, res["refresh_token"])
    return LoginOut(message="Logged in successfully", token=res["token"], user=res["user"])


@router.get(
    "/refresh",
    response_model=RefreshOut,
    summary="Refresh access token",
    description="Issues a new access token from the refresh cookie.",
)
def refresh(request: Request):
    try:
        res = service.refresh(_refresh_cookie(request))
    except ForbiddenError as e:
        out = JSONResponse(status_code=e.status_code, content={"message": e.message})
        _clear_refresh_cookie(out)
        return out
    return RefreshOut(token=res["token"], user=res["user"])


@router.post("/logout", response_model=MessageOut, summary="Log out")
def logout(request: Request, response: Response):
    service.logout(_refresh_cookie(request))
    _clear_refresh_cookie(response)
    return MessageOut(message="Logged out successfully")


@router.get("/get", response_model=UserEnvelope, summary="Current user profile")
def get_user(id: Optional[str] = Query(default=None), user_id: str = Depends(get_current_user_id)):
    return UserEnvelope(user=service.get_user(ensure_self(id, user_id)))


@router.patch(
    "/update",
    response_model=UserUpdateOut,
    status_code=status.HTTP_201_CREATED,
    summary="Update profile",
    description="Partial update of name, email address and password; blank fields are ignored.",
)
def update_user(payload: UserUpdatePayload, user_id: str = Depends(get_current_user_id)):
    user = service.update_user(
        ensure_self(payload.id, user_id),
        name=payload.name,
        email_address=payload.email_address,
        password=payload.password,
    )
    return UserUpdateOut(message="User details updated successfully", user=user)


@router.patch(
    "/reset-password",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    summary="Reset password",
)
def reset_password(payload: ResetPasswordPayload):
    service.reset_password(email_address=payload.email_address, password=payload.password)
    return MessageOut(message="Password reset successful")


@router.delete(
    "/delete",
    response_model=MessageOut,
    summary="Delete account",
    description="Deletes the account, its notes and their attachments.",
)
def delete_user(response: Response, id: Optional[str] = Query(default=None), user_id: str = Depends(get_current_user_id)):
    service.delete_user(ensure_self(id, user_id))
    _clear_refresh_cookie(response)
    return MessageOut(message="User successfully deleted")
