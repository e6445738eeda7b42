"""Audit records written after dashboard responses."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from fastapi import BackgroundTasks, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext
from app.db.dependencies import get_session_factory
from app.models.entities import ActivityLog

logger = logging.getLogger(__name__)

DASHBOARD_CONTEXT = "Dashboard"


@dataclass(frozen=True, slots=True)
class ActivityEvent:
    event_name: str
    description: str
    user_name: str
    host_name: str
    ip_address: str
    project_id: int = 0
    event_context: str = DASHBOARD_CONTEXT
    created_at: datetime = field(default_factory=datetime.utcnow)


class ActivityLogSink:
    def write(self, event: ActivityEvent) -> None:
        raise NotImplementedError


class DatabaseActivityLogSink(ActivityLogSink):
    """Inserts into ``activity_logs`` with its own session."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    def write(self, event: ActivityEvent) -> None:
        session = self.session_factory()
        try:
            session.add(
                ActivityLog(
                    created_at=event.created_at,
                    user_name=event.user_name,
                    host_name=event.host_name,
                    event_context=event.event_context,
                    ip_address=event.ip_address,
                    description=event.description,
                    event_name=event.event_name,
                    project_id=event.project_id,
                )
            )
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()


class ActivityLogger:
    """Queues one audit event per request; failures never reach the client."""

    def __init__(self, sink: ActivityLogSink) -> None:
        self.sink = sink

    def write(self, event: ActivityEvent) -> None:
        try:
            self.sink.write(event)
        except Exception:
            logger.exception(
                "Failed to write activity log event=%s project_id=%s",
                event.event_name,
                event.project_id,
            )

    def record(
        self,
        background_tasks: BackgroundTasks,
        context: RequestUserContext,
        *,
        description: str,
        project_id: int | None = None,
        event_name: str = "Get",
    ) -> ActivityEvent:
        event = ActivityEvent(
            event_name=event_name,
            description=description,
            user_name=context.user_name,
            host_name=context.host_name,
            ip_address=context.ip_address,
            project_id=project_id or 0,
        )
        background_tasks.add_task(self.write, event)
        return event


def get_activity_log_sink(
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> ActivityLogSink:
    return DatabaseActivityLogSink(session_factory)


def get_activity_logger(sink: ActivityLogSink = Depends(get_activity_log_sink)) -> ActivityLogger:
    return ActivityLogger(sink)
