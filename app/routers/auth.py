# app/routers/auth.py
from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from app.core.auth import require_auth
from app.core.config import get_settings
from app.database import get_session
from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.common import Envelope
from app.schemas.user import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserRead,
    UserResponse,
)
from app.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])

settings = get_settings()
repo = UserRepository()
service = UserService(repo)


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    response: Response,
    session: Session = Depends(get_session),
):
    """
    Create a customer account.

    Returns the access token in the body and also sets it as an
    httponly cookie for browser clients.
    """
    token, user = service.register(session, payload)
    _set_auth_cookie(response, token)
    return AuthResponse(token=token, user=UserRead.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    response: Response,
    session: Session = Depends(get_session),
):
    token, user = service.login(session, payload)
    _set_auth_cookie(response, token)
    return AuthResponse(token=token, user=UserRead.model_validate(user))


@router.get("/logout", response_model=Envelope)
def logout(response: Response):
    """
    Clear the auth cookie. Bearer tokens are stateless and simply expire.
    """
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return Envelope(message="Logged out")


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(require_auth)):
    """
    Get the current authenticated user.
    """
    return UserResponse(user=UserRead.model_validate(current_user))


@router.put("/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update name and/or phone of the current user.
    """
    user = service.update_profile(session, current_user, payload)
    return UserResponse(message="Profile updated", user=UserRead.model_validate(user))
