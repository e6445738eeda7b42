"""Time-bucketed report series for a project or the visible portfolio."""

from __future__ import annotations

from datetime import date

from sqlalchemy import distinct, func, select
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
    ProjectStage,
)
from app.repositories.dashboard_repository import DashboardRepository, activity_pending_qc
from app.services.lifecycle import in_window
from app.services.time_window import Bucket, TimeWindow, report_buckets

QC_STAGE_STATUSES = ("approved", "pending")


def normalize_stage_name(name: str) -> str:
    return name.strip().lower().replace(" ", "_")


class ReportService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = DashboardRepository(db)
        self.settings = get_settings()

    # ---------- Shared series ----------
    def _planned(self, buckets: list[Bucket], *conditions) -> list[tuple[int, float]]:
        return self.repo.bucketed_element_totals(
            source=Activity,
            timestamp=Activity.start_date,
            element_id=Activity.element_id,
            buckets=buckets,
            conditions=conditions,
        )

    def _casted(self, buckets: list[Bucket], *conditions) -> list[tuple[int, float]]:
        return self.repo.bucketed_element_totals(
            source=PrecastStock,
            timestamp=PrecastStock.production_date,
            element_id=PrecastStock.element_id,
            buckets=buckets,
            conditions=conditions,
        )

    def _dispatched(self, buckets: list[Bucket], project_id: int) -> list[tuple[int, float]]:
        return self.repo.bucketed_element_totals(
            source=PrecastStock,
            timestamp=PrecastStock.dispatch_start,
            element_id=PrecastStock.element_id,
            buckets=buckets,
            conditions=(PrecastStock.project_id == project_id, PrecastStock.dispatch_status.is_(True)),
        )

    def _erected(self, buckets: list[Bucket], project_id: int, *conditions) -> list[tuple[int, float]]:
        return self.repo.bucketed_element_totals(
            source=PrecastStock,
            timestamp=PrecastStock.updated_at,
            element_id=PrecastStock.element_id,
            buckets=buckets,
            conditions=(PrecastStock.project_id == project_id, PrecastStock.erected.is_(True), *conditions),
        )

    # ---------- Reports ----------
    def production_reports(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        window: TimeWindow,
        today: date | None = None,
    ) -> list[dict[str, object]]:
        ensure_project_access(self.db, context, project_id)
        buckets = report_buckets(window, today=today)
        planned = self._planned(buckets, Activity.project_id == project_id)
        casted = self._casted(buckets, PrecastStock.project_id == project_id)
        dispatched = self._dispatched(buckets, project_id)
        erected = self._erected(buckets, project_id)

        series: list[dict[str, object]] = []
        for index, bucket in enumerate(buckets):
            planned_count, concrete_required = planned[index]
            casted_count, concrete_used = casted[index]
            dispatch_count = dispatched[index][0]
            series.append(
                {
                    "name": bucket.name,
                    "planned": planned_count,
                    "casted": casted_count,
                    "stockyard": max(0, casted_count - dispatch_count),
                    "dispatch": dispatch_count,
                    "erected": erected[index][0],
                    "concrete_required": round(concrete_required, 2),
                    "concrete_used": round(concrete_used, 2),
                    "concrete_balance": round(max(0.0, concrete_required - concrete_used), 2),
                }
            )
        return series

    def stockyard_reports(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        window: TimeWindow,
        today: date | None = None,
    ) -> list[dict[str, object]]:
        ensure_project_access(self.db, context, project_id)
        buckets = report_buckets(window, today=today)
        checkins = self._casted(buckets, PrecastStock.project_id == project_id)
        checkouts = self._erected(buckets, project_id)
        return [
            {
                "name": bucket.name,
                "checkins": checkins[index][0],
                "checkouts": checkouts[index][0],
                "adjustments": 0,
            }
            for index, bucket in enumerate(buckets)
        ]

    def stockyard_reports_by_stockyards(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        window: TimeWindow,
        today: date | None = None,
    ) -> list[dict[str, object]]:
        """Stockyard report limited to the yards the caller manages in this project."""

        ensure_project_access(self.db, context, project_id)
        managed = PrecastStock.stockyard_id.in_(self.repo.managed_stockyard_ids(project_id, context.user_id))
        buckets = report_buckets(window, today=today)
        checkins = self._casted(buckets, PrecastStock.project_id == project_id, managed)
        checkouts = self._erected(buckets, project_id, managed)
        return [
            {
                "name": bucket.name,
                "checkins": checkins[index][0],
                "checkouts": checkouts[index][0],
                "adjustments": 0,
            }
            for index, bucket in enumerate(buckets)
        ]

    def element_type_reports(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        window: TimeWindow,
    ) -> list[dict[str, object]]:
        ensure_project_access(self.db, context, project_id)
        rows = self.db.execute(
            select(ElementType.element_type, func.count(distinct(PrecastStock.element_id)))
            .select_from(PrecastStock)
            .join(Element, Element.id == PrecastStock.element_id)
            .join(ElementType, ElementType.element_type_id == Element.element_type_id)
            .where(PrecastStock.project_id == project_id, in_window(PrecastStock.created_at, window))
            .group_by(ElementType.element_type)
            .order_by(ElementType.element_type.asc())
        ).all()
        return [{"element_type": element_type, "count": int(count)} for element_type, count in rows]

    def planned_casted(
        self,
        *,
        context: RequestUserContext,
        project_id: int | None,
        window: TimeWindow,
        today: date | None = None,
    ) -> list[dict[str, object]]:
        if project_id is not None:
            ensure_project_access(self.db, context, project_id)
            project_ids = select(Project.project_id).where(Project.project_id == project_id)
        else:
            project_ids = self.repo.visible_project_ids(context.scope)

        buckets = report_buckets(window, today=today)
        planned = self._planned(buckets, Activity.project_id.in_(project_ids))
        casted = self._casted(buckets, PrecastStock.project_id.in_(project_ids))
        return [
            {"name": bucket.name, "planned": planned[index][0], "casted": casted[index][0]}
            for index, bucket in enumerate(buckets)
        ]

    def qc_reports(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        window: TimeWindow,
        today: date | None = None,
    ) -> list[dict[str, object]] | dict[str, list]:
        ensure_project_access(self.db, context, project_id)
        qc_users = self.repo.qc_user_ids(project_id, self.settings.qc_role_names)
        if not qc_users:
            return {"data": []}

        buckets = report_buckets(window, today=today)
        approved = self.repo.bucketed_row_counts(
            source=CompleteProduction,
            timestamp=CompleteProduction.updated_at,
            buckets=buckets,
            conditions=(
                CompleteProduction.project_id == project_id,
                CompleteProduction.user_id.in_(qc_users),
                func.lower(CompleteProduction.status) == "completed",
            ),
        )
        pending = self.repo.bucketed_row_counts(
            source=Activity,
            timestamp=Activity.start_date,
            buckets=buckets,
            conditions=(Activity.project_id == project_id, activity_pending_qc()),
        )
        return [
            {"name": bucket.name, "approved": approved[index], "pending": pending[index]}
            for index, bucket in enumerate(buckets)
        ]

    def qc_reports_stagewise(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        window: TimeWindow,
    ) -> dict[str, list[dict[str, object]]]:
        ensure_project_access(self.db, context, project_id)
        qc_users = self.repo.qc_user_ids(project_id, self.settings.qc_role_names)
        if not qc_users:
            return {"data": []}

        approved_rows = self.db.execute(
            select(ProjectStage.name, func.count())
            .select_from(CompleteProduction)
            .join(ProjectStage, ProjectStage.id == CompleteProduction.stage_id)
            .where(
                CompleteProduction.project_id == project_id,
                in_window(CompleteProduction.started_at, window),
                CompleteProduction.user_id.in_(qc_users),
                func.lower(CompleteProduction.status) == "completed",
            )
            .group_by(ProjectStage.name)
        ).all()
        pending_rows = self.db.execute(
            select(ProjectStage.name, func.count())
            .select_from(Activity)
            .join(ProjectStage, ProjectStage.id == Activity.stage_id)
            .where(
                Activity.project_id == project_id,
                in_window(Activity.start_date, window),
                activity_pending_qc(),
            )
            .group_by(ProjectStage.name)
        ).all()

        counts: dict[tuple[str, str], int] = {}
        for status_name, rows in (("approved", approved_rows), ("pending", pending_rows)):
            for stage_name, count in rows:
                key = (normalize_stage_name(stage_name), status_name)
                counts[key] = counts.get(key, 0) + int(count)

        stages: list[str] = []
        for name in self.repo.project_stage_names(project_id):
            normalized = normalize_stage_name(name)
            if normalized not in stages:
                stages.append(normalized)

        return {
            "data": [
                {"stage": stage, "status": status_name, "count": counts.get((stage, status_name), 0)}
                for stage in stages
                for status_name in QC_STAGE_STATUSES
            ]
        }
