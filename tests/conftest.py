from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.dependencies import get_db_session
import app.models.entities  # noqa: F401
from app.main import create_app
from app.models.entities import (
    Activity,
    ActivityLog,
    Client,
    CompleteProduction,
    Element,
    ElementType,
    EndClient,
    Precast,
    PrecastStock,
    Project,
    ProjectMember,
    ProjectStage,
    ProjectStockyard,
    Role,
    Stage,
    Stockyard,
    User,
    UserSession,
)
from app.services.activity_log import ActivityEvent, ActivityLogSink, get_activity_log_sink

TEST_TABLES = [
    Role.__table__,
    User.__table__,
    Client.__table__,
    EndClient.__table__,
    Project.__table__,
    UserSession.__table__,
    ProjectMember.__table__,
    Precast.__table__,
    ElementType.__table__,
    Element.__table__,
    Stage.__table__,
    ProjectStage.__table__,
    Activity.__table__,
    Stockyard.__table__,
    ProjectStockyard.__table__,
    PrecastStock.__table__,
    CompleteProduction.__table__,
    ActivityLog.__table__,
]


class RecordingActivityLogSink(ActivityLogSink):
    def __init__(self) -> None:
        self.events: list[ActivityEvent] = []

    def write(self, event: ActivityEvent) -> None:
        self.events.append(event)


@pytest.fixture()
def session_factory() -> Generator[Callable[[], Session], None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)
        engine.dispose()


@pytest.fixture()
def db_session(session_factory: Callable[[], Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def activity_sink() -> RecordingActivityLogSink:
    return RecordingActivityLogSink()


@pytest.fixture()
def client(db_session: Session, activity_sink: RecordingActivityLogSink) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    app.dependency_overrides[get_activity_log_sink] = lambda: activity_sink
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
