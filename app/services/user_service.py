# app/services/user_service.py
import logging
from datetime import datetime, timezone

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.auth import create_access_token, hash_password, verify_password
from app.core.exceptions import Unauthorized, ValidationError
from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.user import LoginRequest, ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for accounts and authentication.

    Responsibilities:
      - password hashing and verification
      - access token issuing
      - profile edits (email is never changed here)
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def register(
        self,
        session: Session,
        payload: RegisterRequest,
    ) -> tuple[str, User]:
        """
        Create a customer account and return (token, user).

        Raises:
            ValidationError(409): if the email is already registered.
        """
        if self.repo.email_exists(session, payload.email):
            raise ValidationError(
                "User already exists",
                field="email",
                status_code=status.HTTP_409_CONFLICT,
            )

        user = User(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            phone=payload.phone,
            role="customer",
        )
        try:
            user = self.repo.save(session, user)
        except IntegrityError:
            # lost a race with a concurrent sign-up for the same email
            session.rollback()
            raise ValidationError(
                "User already exists",
                field="email",
                status_code=status.HTTP_409_CONFLICT,
            )

        logger.info("Registered user %s", user.id)
        return create_access_token(user), user

    def login(self, session: Session, payload: LoginRequest) -> tuple[str, User]:
        """
        Verify credentials and return (token, user).

        The same message is used for unknown email and wrong password.
        """
        user = self.repo.get_by_email(session, payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise Unauthorized("Invalid credentials")
        if not user.is_active:
            raise Unauthorized("Account is deactivated")

        return create_access_token(user), user

    def update_profile(
        self,
        session: Session,
        current_user: User,
        payload: ProfileUpdate,
    ) -> User:
        """
        Partial update for profile edits.
        Editable fields are `name` and `phone`.
        """
        if payload.name is not None:
            current_user.name = payload.name

        if "phone" in payload.model_fields_set:
            current_user.phone = payload.phone

        current_user.updated_at = datetime.now(timezone.utc)
        return self.repo.save(session, current_user)
