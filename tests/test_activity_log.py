from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from fastapi import BackgroundTasks
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext
from app.models.entities import ActivityLog
from app.services.activity_log import (
    ActivityEvent,
    ActivityLogger,
    ActivityLogSink,
    DatabaseActivityLogSink,
)
from tests.seed import create_project, login

CONTEXT = RequestUserContext(
    user_id=3,
    role_name="admin",
    user_name="Test User",
    host_name="yard-office",
    ip_address="10.0.0.5",
    session_id="token",
)


class BrokenSink(ActivityLogSink):
    def write(self, event: ActivityEvent) -> None:
        raise OperationalError("INSERT INTO activity_logs", {}, Exception("database is locked"))


def test_database_sink_inserts_row(session_factory: Callable[[], Session], db_session: Session) -> None:
    event = ActivityEvent(
        event_name="Get",
        description="Viewed element status",
        user_name="Test User",
        host_name="yard-office",
        ip_address="10.0.0.5",
        project_id=12,
        created_at=datetime(2025, 3, 1, 10, 0),
    )

    DatabaseActivityLogSink(session_factory).write(event)
    row = db_session.scalar(select(ActivityLog))

    assert row is not None
    assert row.event_context == "Dashboard"
    assert row.event_name == "Get"
    assert row.project_id == 12
    assert row.created_at == datetime(2025, 3, 1, 10, 0)


def test_record_queues_event_for_background_write() -> None:
    written: list[ActivityEvent] = []

    class ListSink(ActivityLogSink):
        def write(self, event: ActivityEvent) -> None:
            written.append(event)

    tasks = BackgroundTasks()
    event = ActivityLogger(ListSink()).record(tasks, CONTEXT, description="Viewed project status")

    assert written == []
    assert len(tasks.tasks) == 1
    assert event.project_id == 0
    assert event.user_name == "Test User"


def test_failed_write_is_logged_not_raised(caplog) -> None:
    event = ActivityEvent(
        event_name="Get",
        description="Viewed element graph",
        user_name="Test User",
        host_name="yard-office",
        ip_address="10.0.0.5",
        project_id=4,
    )

    with caplog.at_level(logging.ERROR, logger="app.services.activity_log"):
        ActivityLogger(BrokenSink()).write(event)

    assert "Failed to write activity log event=Get project_id=4" in caplog.text


def test_dashboard_request_records_activity(client: TestClient, db_session: Session, activity_sink) -> None:
    _, headers = login(db_session, role_name="superadmin", email="audit@test.local", token="audit-token")
    project = create_project(db_session, name="Audited")

    response = client.get("/api/element_status", params={"project_id": project.project_id}, headers=headers)

    assert response.status_code == 200
    assert len(activity_sink.events) == 1
    event = activity_sink.events[0]
    assert event.event_name == "Get"
    assert event.event_context == "Dashboard"
    assert event.user_name == "Test User"
    assert event.host_name == "yard-office"
    assert event.ip_address == "10.0.0.5"
    assert event.project_id == project.project_id


def test_projects_overview_records_search(client: TestClient, db_session: Session, activity_sink) -> None:
    _, headers = login(db_session, role_name="superadmin", email="search@test.local", token="search-token")

    response = client.get("/api/projects_overview", headers=headers)

    assert response.status_code == 200
    assert [event.event_name for event in activity_sink.events] == ["Search"]


def test_rejected_request_records_nothing(client: TestClient, db_session: Session, activity_sink) -> None:
    _, headers = login(db_session, role_name="Member", email="denied@test.local", token="denied-token")
    project = create_project(db_session, name="Hidden")

    response = client.get("/api/element_status", params={"project_id": project.project_id}, headers=headers)

    assert response.status_code == 403
    assert activity_sink.events == []


def test_non_database_sink_failure_is_logged_not_raised(caplog) -> None:
    class UnreachableSink(ActivityLogSink):
        def write(self, event: ActivityEvent) -> None:
            raise ConnectionError("audit store unreachable")

    event = ActivityEvent(
        event_name="Search",
        description="Searched projects overview",
        user_name="Test User",
        host_name="yard-office",
        ip_address="10.0.0.5",
    )

    with caplog.at_level(logging.ERROR, logger="app.services.activity_log"):
        ActivityLogger(UnreachableSink()).write(event)

    assert "Failed to write activity log event=Search project_id=0" in caplog.text
