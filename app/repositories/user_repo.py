# app/repositories/user_repo.py
from sqlalchemy import func
from sqlmodel import Session, select

from app.models.user import User


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:
    """
    Data access for accounts. Emails are stored and matched lower-cased.
    """

    def get_by_id(self, session: Session, user_id: int) -> User | None:
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        stmt = select(User).where(User.email == _normalize_email(email))
        return session.exec(stmt).first()

    def email_exists(self, session: Session, email: str) -> bool:
        stmt = (
            select(func.count())
            .select_from(User)
            .where(User.email == _normalize_email(email))
        )
        return session.exec(stmt).one() > 0

    def save(self, session: Session, user: User) -> User:
        """Insert or update `user` and commit."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
