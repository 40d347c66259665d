# app/database.py
from contextlib import contextmanager
from typing import Iterator

from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()


def normalize_database_url(url: str) -> str:
    """
    Force the psycopg (v3) driver for Postgres URLs.

    Hosting providers hand out `postgres://` or bare `postgresql://` URLs;
    SQLAlchemy 2.x needs an explicit driver to pick psycopg instead of psycopg2.
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    scheme = url.split("://", 1)[0]
    if scheme == "postgresql":
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


db_url = normalize_database_url(settings.DATABASE_URL)

# sqlite connections are shared across the threadpool FastAPI runs sync routes in
connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}

engine = create_engine(
    db_url,
    echo=settings.DATABASE_ECHO,
    pool_pre_ping=True,
    connect_args=connect_args,
)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """
    Run a multi-step unit of work as one transaction.

    Commits when the block exits normally. Any exception rolls back every
    write made in the block and is re-raised unchanged.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
