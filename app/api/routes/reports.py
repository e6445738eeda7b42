"""Reporting endpoints: time-bucketed production, QC and stockyard series."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, get_current_user_context
from app.db.dependencies import get_db_session
from app.services.activity_log import ActivityLogger, get_activity_logger
from app.services.report_service import ReportService
from app.services.time_window import TimeWindow, resolve_window

router = APIRouter(tags=["reports"])


def _service(db: Session) -> ReportService:
    return ReportService(db)


def report_window(
    type: str = "yearly",
    year: int | None = None,
    month: int | None = None,
    day: int | None = Query(default=None, alias="date"),
    start_date: date | None = None,
    end_date: date | None = None,
) -> TimeWindow:
    """Shared ``type/year/month/date/start_date/end_date`` query parameters."""

    return resolve_window(
        type,
        year=year,
        month=month,
        day=day,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/production_reports/{project_id}")
def get_production_reports(
    project_id: int,
    background_tasks: BackgroundTasks,
    window: TimeWindow = Depends(report_window),
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]]:
    payload = _service(db).production_reports(context=context, project_id=project_id, window=window)
    activity.record(
        background_tasks,
        context,
        description=f"Viewed {window.kind} production report",
        project_id=project_id,
    )
    return payload


@router.get("/qc_reports/{project_id}")
def get_qc_reports(
    project_id: int,
    background_tasks: BackgroundTasks,
    window: TimeWindow = Depends(report_window),
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]] | dict[str, list]:
    payload = _service(db).qc_reports(context=context, project_id=project_id, window=window)
    activity.record(background_tasks, context, description=f"Viewed {window.kind} QC report", project_id=project_id)
    return payload


@router.get("/qc_reports_stagewise/{project_id}")
def get_qc_reports_stagewise(
    project_id: int,
    background_tasks: BackgroundTasks,
    window: TimeWindow = Depends(report_window),
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, list[dict[str, object]]]:
    payload = _service(db).qc_reports_stagewise(context=context, project_id=project_id, window=window)
    activity.record(
        background_tasks,
        context,
        description=f"Viewed {window.kind} stagewise QC report",
        project_id=project_id,
    )
    return payload


@router.get("/stockyard_reports/{project_id}")
def get_stockyard_reports(
    project_id: int,
    background_tasks: BackgroundTasks,
    window: TimeWindow = Depends(report_window),
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]]:
    payload = _service(db).stockyard_reports(context=context, project_id=project_id, window=window)
    activity.record(
        background_tasks,
        context,
        description=f"Viewed {window.kind} stockyard report",
        project_id=project_id,
    )
    return payload


@router.get("/stockyard_reports_by_stockyards/{project_id}")
def get_stockyard_reports_by_stockyards(
    project_id: int,
    background_tasks: BackgroundTasks,
    window: TimeWindow = Depends(report_window),
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]]:
    payload = _service(db).stockyard_reports_by_stockyards(context=context, project_id=project_id, window=window)
    activity.record(
        background_tasks,
        context,
        description=f"Viewed {window.kind} stockyard report for managed stockyards",
        project_id=project_id,
    )
    return payload


@router.get("/element_type_reports/{project_id}")
def get_element_type_reports(
    project_id: int,
    background_tasks: BackgroundTasks,
    window: TimeWindow = Depends(report_window),
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]]:
    payload = _service(db).element_type_reports(context=context, project_id=project_id, window=window)
    activity.record(
        background_tasks,
        context,
        description=f"Viewed {window.kind} element type report",
        project_id=project_id,
    )
    return payload


@router.get("/planned_casted")
def get_planned_casted(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    window: TimeWindow = Depends(report_window),
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]]:
    payload = _service(db).planned_casted(context=context, project_id=project_id, window=window)
    activity.record(
        background_tasks,
        context,
        description=f"Viewed {window.kind} planned vs casted report",
        project_id=project_id,
    )
    return payload
