"""Role-scoped dashboard counters, graphs, overview and hierarchy breakdowns."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta

from fastapi import HTTPException, status
from sqlalchemy import ColumnElement, and_, case, distinct, func, select
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, ensure_project_access
from app.core.config import get_settings
from app.models.entities import (
    Activity,
    CompleteProduction,
    Element,
    ElementType,
    PrecastStock,
    Project,
    ProjectMember,
    ProjectStage,
    Role,
    Stage,
)
from app.repositories.dashboard_repository import DashboardRepository, activity_flagged
from app.services.breakdown import ProjectBreakdown, build_breakdown
from app.services.hierarchy import HierarchyResolver
from app.services.lifecycle import in_window
from app.services.rollup import RollupEngine
from app.services.time_window import TimeWindow, day_window, month_to_date_window, open_range_window, resolve_window

OVERVIEW_TYPES = ("all", "active", "suspend", "inactive", "closed")
QC_STATUSES = ("completed", "rejected", "hold")


@dataclass(slots=True)
class OverviewFilters:
    type: str = "all"
    name: str | None = None
    project_id: int | None = None
    client_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    page: int | None = None
    page_size: int | None = None


class DashboardService:
    """Dashboard read models for the authenticated actor."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = DashboardRepository(db)
        self.settings = get_settings()

    # ---------- Scope ----------
    def _project_filter(self, context: RequestUserContext, project_id: int | None) -> ColumnElement[bool]:
        """One project after an access check, otherwise every visible one."""

        if project_id is not None:
            ensure_project_access(self.db, context, project_id)
            return Project.project_id == project_id
        return context.scope.clause()

    def _visible_ids(self, context: RequestUserContext, project_id: int | None):
        return select(Project.project_id).where(self._project_filter(context, project_id))

    # ---------- Project summaries ----------
    def production_summary(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        start_date: date | None,
        end_date: date | None,
        today: date | None = None,
    ) -> dict[str, object]:
        ensure_project_access(self.db, context, project_id)
        window = open_range_window(start_date, end_date, today=today)

        total = self.db.scalar(select(func.count()).select_from(Element).where(Element.project_id == project_id))
        in_production = self.db.scalar(
            select(func.count(distinct(Activity.element_id))).where(
                Activity.project_id == project_id,
                in_window(Activity.start_date, window),
            )
        )
        casted = self.db.scalar(
            select(func.count(distinct(PrecastStock.element_id))).where(
                PrecastStock.project_id == project_id,
                in_window(PrecastStock.created_at, window),
            )
        )
        erected = self.db.scalar(
            select(func.count(distinct(PrecastStock.element_id))).where(
                PrecastStock.project_id == project_id,
                PrecastStock.erected.is_(True),
                in_window(PrecastStock.updated_at, window),
            )
        )
        return {
            "Total": int(total or 0),
            "InProduction": int(in_production or 0),
            "Casted": int(casted or 0),
            "Erected": int(erected or 0),
        }

    def qc_history(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        start_date: date | None,
        end_date: date | None,
        today: date | None = None,
    ) -> dict[str, int]:
        ensure_project_access(self.db, context, project_id)
        window = open_range_window(start_date, end_date, today=today)

        status_column = func.lower(CompleteProduction.status)
        rows = self.db.execute(
            select(status_column.label("status"), func.count().label("count"))
            .select_from(CompleteProduction)
            .join(
                ProjectMember,
                and_(
                    ProjectMember.user_id == CompleteProduction.user_id,
                    ProjectMember.project_id == CompleteProduction.project_id,
                ),
            )
            .join(Role, Role.role_id == ProjectMember.role_id)
            .where(
                CompleteProduction.project_id == project_id,
                in_window(CompleteProduction.updated_at, window),
                Role.role_name.in_(self.settings.qc_role_names),
                status_column.in_(QC_STATUSES),
            )
            .group_by(status_column)
        ).all()
        counts = {row.status: int(row.count) for row in rows}
        return {
            "approved": counts.get("completed", 0),
            "rejected": counts.get("rejected", 0),
            "hold": counts.get("hold", 0),
        }

    # ---------- Portfolio counters ----------
    def project_status(self, *, context: RequestUserContext, today: date | None = None) -> dict[str, int]:
        current = today or date.today()
        not_suspended = Project.suspend.is_(False)

        def counted(condition: ColumnElement[bool]):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        row = self.db.execute(
            select(
                func.count().label("total"),
                counted(and_(not_suspended, Project.start_date <= current, Project.end_date >= current)).label("active"),
                counted(Project.suspend.is_(True)).label("suspended"),
                counted(and_(not_suspended, Project.end_date < current)).label("closed"),
                counted(and_(not_suspended, Project.start_date > current)).label("inactive"),
            ).where(context.scope.clause(include_suspended=True))
        ).one()
        return {
            "total_projects": int(row.total),
            "active": int(row.active),
            "suspended": int(row.suspended),
            "closed": int(row.closed),
            "inactive": int(row.inactive),
        }

    def _stock_count(self, project_filter: ColumnElement[bool], *conditions: ColumnElement[bool], metric: str) -> int:
        return self.repo.safe_scalar(
            select(func.count(distinct(PrecastStock.element_id)))
            .select_from(PrecastStock)
            .join(Element, Element.id == PrecastStock.element_id)
            .join(Project, Project.project_id == Element.project_id)
            .where(project_filter, *conditions),
            metric=metric,
        )

    def element_status(self, *, context: RequestUserContext, project_id: int | None) -> dict[str, int]:
        project_filter = self._project_filter(context, project_id)
        in_production = self.repo.safe_scalar(
            select(func.count(distinct(Activity.element_id)))
            .select_from(Activity)
            .join(Project, Project.project_id == Activity.project_id)
            .where(project_filter, Activity.completed.is_(False)),
            metric="in_production",
        )
        return {
            "casted_elements": self._stock_count(
                project_filter, PrecastStock.production_date.is_not(None), metric="casted_elements"
            ),
            "erected_elements": self._stock_count(
                project_filter, PrecastStock.erected.is_(True), metric="erected_elements"
            ),
            "in_stock": self._stock_count(
                project_filter,
                PrecastStock.stockyard.is_(True),
                PrecastStock.dispatch_status.is_(False),
                PrecastStock.erected.is_(False),
                metric="in_stock",
            ),
            "in_production": in_production,
        }

    def _grouped_stock_counts(self, ids_stmt, *conditions: ColumnElement[bool], metric: str) -> dict[int, int]:
        return self.repo.safe_grouped_counts(
            select(Element.project_id, func.count(distinct(PrecastStock.element_id)))
            .select_from(PrecastStock)
            .join(Element, Element.id == PrecastStock.element_id)
            .where(Element.project_id.in_(ids_stmt), *conditions)
            .group_by(Element.project_id),
            metric=metric,
        )

    def element_status_project(self, *, context: RequestUserContext) -> dict[str, dict[str, int]]:
        projects = self.repo.list_visible_projects(context.scope)
        ids_stmt = self.repo.visible_project_ids(context.scope)

        casted = self._grouped_stock_counts(
            ids_stmt, PrecastStock.production_date.is_not(None), metric="casted_elements"
        )
        erected = self._grouped_stock_counts(ids_stmt, PrecastStock.erected.is_(True), metric="erected_elements")
        in_stock = self._grouped_stock_counts(
            ids_stmt,
            PrecastStock.stockyard.is_(True),
            PrecastStock.dispatch_status.is_(False),
            PrecastStock.erected.is_(False),
            metric="in_stock",
        )
        in_production = self.repo.safe_grouped_counts(
            select(Activity.project_id, func.count(distinct(Activity.element_id)))
            .where(Activity.project_id.in_(ids_stmt), Activity.completed.is_(False))
            .group_by(Activity.project_id),
            metric="in_production",
        )

        return {
            project.name: {
                "casted_elements": casted.get(project.project_id, 0),
                "erected_elements": erected.get(project.project_id, 0),
                "in_stock": in_stock.get(project.project_id, 0),
                "in_production": in_production.get(project.project_id, 0),
            }
            for project in projects
        }

    def element_stages_graph(self, *, context: RequestUserContext) -> dict[str, int]:
        visible = self.repo.visible_project_ids(context.scope)
        rows = self.db.execute(
            select(Stage.name, func.count(Activity.id))
            .select_from(Stage)
            .outerjoin(ProjectStage, ProjectStage.name == Stage.name)
            .outerjoin(
                Activity,
                and_(Activity.stage_id == ProjectStage.id, Activity.project_id.in_(visible)),
            )
            .group_by(Stage.id, Stage.name)
            .order_by(Stage.id.asc())
        ).all()

        graph = {name: int(count) for name, count in rows}
        graph["rejected"] = self.repo.safe_scalar(
            select(func.count()).select_from(Activity).where(Activity.project_id.in_(visible), activity_flagged("Rejected")),
            metric="rejected",
        )
        graph["on_hold"] = self.repo.safe_scalar(
            select(func.count()).select_from(Activity).where(Activity.project_id.in_(visible), activity_flagged("Hold")),
            metric="on_hold",
        )
        return graph

    def element_graph(
        self,
        *,
        context: RequestUserContext,
        project_id: int | None,
        today: date | None = None,
    ) -> list[dict[str, object]]:
        """Casting per project for each of the last seven days, today included."""

        current = today or date.today()
        window = day_window(current - timedelta(days=6), current)
        project_filter = self._project_filter(context, project_id)
        projects = self.db.execute(
            select(Project.project_id, Project.name)
            .where(project_filter)
            .order_by(Project.name.asc(), Project.project_id.asc())
        ).all()

        rows = self.db.execute(
            select(PrecastStock.project_id, PrecastStock.element_id, PrecastStock.production_date).where(
                PrecastStock.project_id.in_([row.project_id for row in projects]),
                in_window(PrecastStock.production_date, window),
            )
        ).all()
        seen: dict[tuple[date, int], set[int]] = {}
        for row in rows:
            seen.setdefault((row.production_date.date(), row.project_id), set()).add(row.element_id)

        graph: list[dict[str, object]] = []
        for day in window.days():
            entry: dict[str, object] = {"day": day.isoformat(), "name": day.strftime("%A")}
            for project in projects:
                entry[project.name] = len(seen.get((day, project.project_id), ()))
            graph.append(entry)
        return graph

    # ---------- Month-to-date ----------
    def _month_to_date_average(
        self,
        *,
        context: RequestUserContext,
        project_id: int | None,
        today: date | None,
        timestamp,
        conditions: tuple[ColumnElement[bool], ...] = (),
    ) -> float:
        window = month_to_date_window(today)
        total = self.db.scalar(
            select(func.count(distinct(PrecastStock.element_id)))
            .select_from(PrecastStock)
            .join(Element, Element.id == PrecastStock.element_id)
            .where(
                Element.project_id.in_(self._visible_ids(context, project_id)),
                in_window(timestamp, window),
                *conditions,
            )
        )
        days_elapsed = len(window.days())
        return round(int(total or 0) / days_elapsed, 2)

    def average_casted(
        self, *, context: RequestUserContext, project_id: int | None, today: date | None = None
    ) -> dict[str, float]:
        average = self._month_to_date_average(
            context=context, project_id=project_id, today=today, timestamp=PrecastStock.production_date
        )
        return {"average_casted_elements": average}

    def average_erected(
        self, *, context: RequestUserContext, project_id: int | None, today: date | None = None
    ) -> dict[str, float]:
        average = self._month_to_date_average(
            context=context,
            project_id=project_id,
            today=today,
            timestamp=PrecastStock.updated_at,
            conditions=(PrecastStock.erected.is_(True),),
        )
        return {"average_erected_elements": average}

    def total_rejections(self, *, context: RequestUserContext, project_id: int | None) -> dict[str, int]:
        count = self.db.scalar(
            select(func.count())
            .select_from(Activity)
            .where(Activity.project_id.in_(self._visible_ids(context, project_id)), activity_flagged("Rejected"))
        )
        return {"total_rejections": int(count or 0)}

    def monthly_rejections(
        self, *, context: RequestUserContext, project_id: int | None, today: date | None = None
    ) -> dict[str, int]:
        window = resolve_window("monthly", today=today)
        count = self.db.scalar(
            select(func.count())
            .select_from(Activity)
            .where(
                Activity.project_id.in_(self._visible_ids(context, project_id)),
                in_window(Activity.start_date, window),
                activity_flagged("Rejected"),
            )
        )
        return {"monthly_rejections": int(count or 0)}

    def dashboard_trends(
        self, *, context: RequestUserContext, project_id: int | None, today: date | None = None
    ) -> dict[str, object]:
        """Stock rows created this month against last month."""

        current_day = today or date.today()
        current = resolve_window("monthly", today=current_day)
        previous_day = current.first_day - timedelta(days=1)
        previous = resolve_window("monthly", year=previous_day.year, month=previous_day.month)
        visible = self._visible_ids(context, project_id)

        def created_in(window: TimeWindow) -> int:
            count = self.db.scalar(
                select(func.count())
                .select_from(PrecastStock)
                .where(PrecastStock.project_id.in_(visible), in_window(PrecastStock.created_at, window))
            )
            return int(count or 0)

        current_count = created_in(current)
        previous_count = created_in(previous)
        days_left = (current.last_day - current_day).days
        return {
            "current_month_count": current_count,
            "previous_month_count": previous_count,
            "difference": f"{current_count - previous_count} ({days_left} days left in month)",
        }

    # ---------- Overview ----------
    def _overview_conditions(
        self, context: RequestUserContext, filters: OverviewFilters, today: date
    ) -> list[ColumnElement[bool]]:
        filter_type = (filters.type or "all").strip().lower()
        if filter_type not in OVERVIEW_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"type must be one of: {', '.join(OVERVIEW_TYPES)}.",
            )

        conditions: list[ColumnElement[bool]] = [context.scope.clause(include_suspended=True)]
        if filter_type == "active":
            conditions.append(
                and_(Project.start_date <= today, Project.end_date >= today, Project.suspend.is_(False))
            )
        elif filter_type == "inactive":
            conditions.append(Project.start_date > today)
        elif filter_type == "closed":
            conditions.append(Project.end_date < today)
        elif filter_type == "suspend":
            conditions.append(Project.suspend.is_(True))

        if filters.name:
            conditions.append(Project.name.ilike(f"%{filters.name}%"))
        if filters.project_id is not None:
            conditions.append(Project.project_id == filters.project_id)
        if filters.client_id is not None:
            conditions.append(Project.client_id == filters.client_id)
        if filters.start_date is not None:
            conditions.append(Project.start_date >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(Project.end_date <= filters.end_date)
        return conditions

    def _pagination(self, filters: OverviewFilters) -> tuple[int, int] | None:
        if filters.page is None and filters.page_size is None:
            return None
        page = max(filters.page or 1, 1)
        limit = filters.page_size or 0
        if limit < 1 or limit > self.settings.overview_max_page_size:
            limit = self.settings.overview_default_page_size
        return page, limit

    @staticmethod
    def serialize_project(project: Project) -> dict[str, object]:
        return {
            "project_id": project.project_id,
            "name": project.name,
            "priority": project.priority,
            "project_status": project.project_status,
            "start_date": project.start_date.isoformat(),
            "end_date": project.end_date.isoformat(),
            "description": project.description,
            "created_at": project.created_at.isoformat(),
            "updated_at": project.updated_at.isoformat(),
            "client_id": project.client_id,
            "budget": project.budget,
            "suspend": project.suspend,
        }

    def projects_overview(
        self,
        *,
        context: RequestUserContext,
        filters: OverviewFilters,
        today: date | None = None,
    ) -> dict[str, object]:
        current = today or date.today()
        conditions = self._overview_conditions(context, filters, current)
        pagination = self._pagination(filters)

        total = int(self.db.scalar(select(func.count()).select_from(Project).where(*conditions)) or 0)
        stmt = select(Project).where(*conditions).order_by(Project.project_id.asc())
        if pagination is not None:
            page, limit = pagination
            stmt = stmt.limit(limit).offset((page - 1) * limit)
        projects = list(self.db.scalars(stmt).all())
        ids = [project.project_id for project in projects]

        def grouped(stmt, metric: str) -> dict[int, int]:
            return self.repo.safe_grouped_counts(stmt, metric=metric) if ids else {}

        stock_base = (
            select(Element.project_id, func.count())
            .select_from(PrecastStock)
            .join(Element, Element.id == PrecastStock.element_id)
            .group_by(Element.project_id)
        )
        metrics = {
            "total_elements": grouped(
                select(Element.project_id, func.count()).where(Element.project_id.in_(ids)).group_by(Element.project_id),
                "total_elements",
            ),
            "casted_elements": grouped(
                stock_base.where(
                    Element.project_id.in_(ids),
                    PrecastStock.stockyard.is_(True),
                    PrecastStock.order_by_erection.is_(False),
                    PrecastStock.erected.is_(False),
                    PrecastStock.dispatch_status.is_(False),
                ),
                "casted_elements",
            ),
            "in_stock": grouped(
                stock_base.where(Element.project_id.in_(ids), PrecastStock.stockyard.is_(True)), "in_stock"
            ),
            "in_production": grouped(
                select(Activity.project_id, func.count())
                .where(Activity.project_id.in_(ids), Activity.completed.is_(False))
                .group_by(Activity.project_id),
                "in_production",
            ),
            "element_type_count": grouped(
                select(ElementType.project_id, func.count())
                .where(ElementType.project_id.in_(ids))
                .group_by(ElementType.project_id),
                "element_type_count",
            ),
            "project_members_count": grouped(
                select(ProjectMember.project_id, func.count())
                .where(ProjectMember.project_id.in_(ids))
                .group_by(ProjectMember.project_id),
                "project_members_count",
            ),
            "erected_elements": grouped(
                stock_base.where(Element.project_id.in_(ids), PrecastStock.erected.is_(True)), "erected_elements"
            ),
        }

        rows: list[dict[str, object]] = []
        aggregates = {
            "total_elements": 0,
            "casted_elements": 0,
            "in_stock": 0,
            "in_production": 0,
            "not_in_production": 0,
            "element_type_count": 0,
            "project_members_count": 0,
        }
        for project in projects:
            row = self.serialize_project(project)
            for key, values in metrics.items():
                row[key] = values.get(project.project_id, 0)
            rows.append(row)
            for key in aggregates:
                if key != "not_in_production":
                    aggregates[key] += int(row[key])
            aggregates["not_in_production"] += int(row["total_elements"]) - int(row["in_production"])

        response: dict[str, object] = {"projects": rows, "aggregates": aggregates}
        if pagination is not None:
            page, limit = pagination
            response["pagination"] = {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
            }
        return response

    # ---------- Hierarchy breakdowns ----------
    def towers(self, *, context: RequestUserContext, project_id: int) -> dict[str, object]:
        ensure_project_access(self.db, context, project_id)
        towers = [
            {
                "id": node.id,
                "project_id": node.project_id,
                "name": node.name,
                "description": node.description,
                "child_count": child_count,
            }
            for node, child_count in self.repo.towers_with_child_counts(project_id)
        ]
        return {"towers": towers, "total_towers": len(towers)}

    def project_breakdown(
        self,
        *,
        project_id: int,
        window: TimeWindow | None,
        hierarchy_ids: list[int] | None = None,
        tower_id: int | None = None,
        include_concrete_by_type: bool = False,
    ) -> ProjectBreakdown:
        hierarchy = HierarchyResolver(self.db).resolve(project_id)
        if hierarchy_ids is not None:
            hierarchy = hierarchy.subset(hierarchy_ids)
        if tower_id is not None:
            only_tower = hierarchy.only_tower(tower_id)
            if only_tower is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="tower_id is not a tower of this project.",
                )
            hierarchy = only_tower
        return build_breakdown(
            RollupEngine(self.db),
            hierarchy,
            window,
            include_concrete_by_type=include_concrete_by_type,
            natural_order=hierarchy_ids is not None,
        )

    def element_status_breakdown(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        window: TimeWindow | None,
    ) -> dict[str, object]:
        ensure_project_access(self.db, context, project_id)
        return self.project_breakdown(project_id=project_id, window=window).as_dict()

    def element_type_status_breakdown_multiple(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        hierarchy_ids: list[int],
        window: TimeWindow | None,
    ) -> dict[str, object]:
        ensure_project_access(self.db, context, project_id)
        if not hierarchy_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="hierarchy_ids must list at least one id.",
            )
        breakdown = self.project_breakdown(project_id=project_id, window=window, hierarchy_ids=hierarchy_ids)
        payload = breakdown.as_dict()
        payload["element_types"] = [
            {"element_type": type_code, **metrics.as_dict()} for type_code, metrics in breakdown.element_types.items()
        ]
        return payload


def parse_hierarchy_ids(raw: str) -> list[int]:
    """``"3,4, 5"`` → ``[3, 4, 5]`` keeping first occurrence order."""

    ids: list[int] = []
    for part in raw.split(","):
        text = part.strip()
        if not text:
            continue
        try:
            value = int(text)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid hierarchy id: {text!r}.",
            ) from exc
        if value not in ids:
            ids.append(value)
    return ids
