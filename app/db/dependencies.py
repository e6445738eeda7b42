"""Database dependencies for FastAPI endpoints."""

from collections.abc import Callable, Generator

from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db_session() -> Generator[Session, None, None]:
    """Yield the request-scoped read session used by the dashboard queries."""

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_session_factory() -> Callable[[], Session]:
    """Factory for work that outlives the request session (activity log writes)."""

    return SessionLocal
