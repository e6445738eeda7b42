"""Download endpoints: the dashboard PDF and breakdown spreadsheets."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.routes.reports import report_window
from app.core.auth import RequestUserContext, get_current_user_context
from app.db.dependencies import get_db_session
from app.services.activity_log import ActivityLogger, get_activity_logger
from app.services.export_service import ExportFilePayload, ExportService
from app.services.time_window import TimeWindow, resolve_optional_window

router = APIRouter(tags=["exports"])


def _service(db: Session) -> ExportService:
    return ExportService(db)


def _download(exported: ExportFilePayload) -> Response:
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f"attachment; filename={exported.filename}"},
    )


@router.get("/dashboard_pdf")
def export_dashboard_pdf(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    tower_id: int | None = None,
    view: str = "all",
    window: TimeWindow = Depends(report_window),
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> Response:
    exported = _service(db).dashboard_pdf(
        context=context,
        project_id=project_id,
        tower_id=tower_id,
        window=window,
        view=view,
    )
    activity.record(
        background_tasks,
        context,
        description=f"Downloaded {window.kind} dashboard PDF view={view}",
        project_id=project_id,
    )
    return _download(exported)


@router.get("/exports/element_status_breakdown/{project_id}")
def export_element_status_breakdown(
    project_id: int,
    background_tasks: BackgroundTasks,
    format: str = Query(default="xlsx"),
    view: str = "all",
    type: str | None = None,
    year: int | None = None,
    month: int | None = None,
    day: int | None = Query(default=None, alias="date"),
    start_date: date | None = None,
    end_date: date | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> Response:
    window = resolve_optional_window(
        type,
        year=year,
        month=month,
        day=day,
        start_date=start_date,
        end_date=end_date,
    )
    exported = _service(db).export_element_status_breakdown(
        context=context,
        project_id=project_id,
        format_name=format,
        view=view,
        window=window,
    )
    activity.record(
        background_tasks,
        context,
        description=f"Exported element status breakdown as {format}",
        project_id=project_id,
    )
    return _download(exported)
