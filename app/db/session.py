"""Engine and session factory."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from app.core.config import Settings, get_settings


def _connect_args(settings: Settings) -> dict[str, object]:
    url = make_url(settings.database_url)
    if url.get_backend_name() == "postgresql":
        timeout_ms = settings.query_timeout_seconds * 1000
        return {"options": f"-c statement_timeout={timeout_ms}"}
    if url.get_backend_name() == "sqlite":
        return {"check_same_thread": False}
    return {}


def build_engine(settings: Settings):
    return create_engine(
        settings.database_url,
        pool_pre_ping=True,
        connect_args=_connect_args(settings),
        future=True,
    )


engine = build_engine(get_settings())
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
