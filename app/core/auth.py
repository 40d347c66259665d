# app/core/auth.py
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from app.core.config import get_settings
from app.core.exceptions import Forbidden, Unauthorized
from app.database import get_session
from app.models.user import User
from app.repositories.user_repo import UserRepository

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated) and the cookie fallback.
bearer_scheme = HTTPBearer(auto_error=False)

users = UserRepository()

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    raw = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(user: User) -> str:
    """
    Issue a signed access token for `user`.

    Claims: sub (user id as string), email, role, iat, exp.
    """
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an access token (JWT).

    Verification:
      - signature (JWT_ALG using JWT_SECRET)
      - expiration time (exp)

    Args:
        token: raw JWT from the Authorization header or auth cookie.

    Returns:
        Decoded JWT claims.

    Raises:
        Unauthorized: if token is invalid/expired.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def _extract_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Resolve the current user from the access token.

    Flow:
      1. Take the token from `Authorization: Bearer` or the auth cookie.
      2. No token => guest => return None.
      3. Decode JWT => extract 'sub' (user id).
      4. Load the user; unknown or deactivated users are rejected.

    Returns:
        User instance if authenticated, else None for guests.

    Raises:
        Unauthorized: if token is malformed, expired or names no active user.
    """
    token = _extract_token(request, credentials)
    if token is None:
        return None  # guest mode

    payload = decode_access_token(token)
    sub = payload.get("sub")

    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise Unauthorized("Invalid sub in token")

    user = users.get_by_id(session, user_id)
    if user is None or not user.is_active:
        raise Unauthorized("User not found or inactive")

    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """
    Enforce authentication.

    If attached to a route, guests (no token) are rejected with 401.
    """
    if user is None:
        raise Unauthorized("Not authorized to access this route")
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    """
    Enforce admin role.

    Raises:
        Forbidden: if role is not admin.
    """
    if user.role != "admin":
        raise Forbidden(f"User role {user.role} is not authorized to access this route")
    return user
