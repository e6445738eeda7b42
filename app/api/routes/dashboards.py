"""Dashboard endpoints: counters, graphs, overview and hierarchy breakdowns."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, get_current_user_context
from app.db.dependencies import get_db_session
from app.services.activity_log import ActivityLogger, get_activity_logger
from app.services.dashboard_service import DashboardService, OverviewFilters, parse_hierarchy_ids
from app.services.time_window import resolve_optional_window

router = APIRouter(tags=["dashboards"])


def _service(db: Session) -> DashboardService:
    return DashboardService(db)


@router.get("/production-summary/{project_id}")
def get_production_summary(
    project_id: int,
    background_tasks: BackgroundTasks,
    start_date: date | None = None,
    end_date: date | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    payload = _service(db).production_summary(
        context=context,
        project_id=project_id,
        start_date=start_date,
        end_date=end_date,
    )
    activity.record(background_tasks, context, description="Viewed production summary", project_id=project_id)
    return payload


@router.get("/qc-history/{project_id}")
def get_qc_history(
    project_id: int,
    background_tasks: BackgroundTasks,
    start_date: date | None = None,
    end_date: date | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, int]:
    payload = _service(db).qc_history(
        context=context,
        project_id=project_id,
        start_date=start_date,
        end_date=end_date,
    )
    activity.record(background_tasks, context, description="Viewed QC history", project_id=project_id)
    return payload


@router.get("/project_status")
def get_project_status(
    background_tasks: BackgroundTasks,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, int]:
    payload = _service(db).project_status(context=context)
    activity.record(background_tasks, context, description="Viewed project status")
    return payload


@router.get("/element_status")
def get_element_status(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, int]:
    payload = _service(db).element_status(context=context, project_id=project_id)
    activity.record(background_tasks, context, description="Viewed element status", project_id=project_id)
    return payload


@router.get("/element_status_project")
def get_element_status_project(
    background_tasks: BackgroundTasks,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, dict[str, int]]:
    payload = _service(db).element_status_project(context=context)
    activity.record(background_tasks, context, description="Viewed element status per project")
    return payload


@router.get("/element_stages_graph")
def get_element_stages_graph(
    background_tasks: BackgroundTasks,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, int]:
    payload = _service(db).element_stages_graph(context=context)
    activity.record(background_tasks, context, description="Viewed element stages graph")
    return payload


@router.get("/element_graph")
def get_element_graph(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]]:
    payload = _service(db).element_graph(context=context, project_id=project_id)
    activity.record(background_tasks, context, description="Viewed element graph", project_id=project_id)
    return payload


@router.get("/average_casted")
def get_average_casted(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, float]:
    payload = _service(db).average_casted(context=context, project_id=project_id)
    activity.record(background_tasks, context, description="Viewed average casted elements", project_id=project_id)
    return payload


@router.get("/average_erected")
def get_average_erected(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, float]:
    payload = _service(db).average_erected(context=context, project_id=project_id)
    activity.record(background_tasks, context, description="Viewed average erected elements", project_id=project_id)
    return payload


@router.get("/total_rejections")
def get_total_rejections(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, int]:
    payload = _service(db).total_rejections(context=context, project_id=project_id)
    activity.record(background_tasks, context, description="Viewed total rejections", project_id=project_id)
    return payload


@router.get("/monthly_rejections")
def get_monthly_rejections(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, int]:
    payload = _service(db).monthly_rejections(context=context, project_id=project_id)
    activity.record(background_tasks, context, description="Viewed monthly rejections", project_id=project_id)
    return payload


@router.get("/dashboard_trends")
def get_dashboard_trends(
    background_tasks: BackgroundTasks,
    project_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    payload = _service(db).dashboard_trends(context=context, project_id=project_id)
    activity.record(background_tasks, context, description="Viewed dashboard trends", project_id=project_id)
    return payload


@router.get("/dashboard/towers/{project_id}")
def get_dashboard_towers(
    project_id: int,
    background_tasks: BackgroundTasks,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    payload = _service(db).towers(context=context, project_id=project_id)
    activity.record(background_tasks, context, description="Viewed tower list", project_id=project_id)
    return payload


@router.get("/projects_overview")
def get_projects_overview(
    background_tasks: BackgroundTasks,
    page: int | None = Query(default=None, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    type: str = "all",
    name: str | None = None,
    project_id: int | None = None,
    client_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    filters = OverviewFilters(
        type=type,
        name=name,
        project_id=project_id,
        client_id=client_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    payload = _service(db).projects_overview(context=context, filters=filters)
    activity.record(
        background_tasks,
        context,
        description=f"Searched projects overview type={filters.type}",
        project_id=project_id,
        event_name="Search",
    )
    return payload


@router.get("/element_status_breakdown/{project_id}")
def get_element_status_breakdown(
    project_id: int,
    background_tasks: BackgroundTasks,
    type: str | None = None,
    year: int | None = None,
    month: int | None = None,
    day: int | None = Query(default=None, alias="date"),
    start_date: date | None = None,
    end_date: date | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    window = resolve_optional_window(
        type,
        year=year,
        month=month,
        day=day,
        start_date=start_date,
        end_date=end_date,
    )
    payload = _service(db).element_status_breakdown(context=context, project_id=project_id, window=window)
    activity.record(background_tasks, context, description="Viewed element status breakdown", project_id=project_id)
    return payload


@router.get("/element_type_status_breakdown_multiple/{project_id}")
def get_element_type_status_breakdown_multiple(
    project_id: int,
    background_tasks: BackgroundTasks,
    hierarchy_ids: str = Query(...),
    type: str | None = None,
    year: int | None = None,
    month: int | None = None,
    day: int | None = Query(default=None, alias="date"),
    start_date: date | None = None,
    end_date: date | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    activity: ActivityLogger = Depends(get_activity_logger),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    window = resolve_optional_window(
        type,
        year=year,
        month=month,
        day=day,
        start_date=start_date,
        end_date=end_date,
    )
    payload = _service(db).element_type_status_breakdown_multiple(
        context=context,
        project_id=project_id,
        hierarchy_ids=parse_hierarchy_ids(hierarchy_ids),
        window=window,
    )
    activity.record(
        background_tasks,
        context,
        description=f"Viewed element type breakdown for hierarchy {hierarchy_ids}",
        project_id=project_id,
    )
    return payload
