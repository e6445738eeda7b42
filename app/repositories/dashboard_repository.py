"""Read queries shared by the dashboard, report and export services."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import ColumnElement, Select, and_, case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from app.core.scope import ProjectScope
from app.models.entities import (
    Activity,
    Element,
    ElementType,
    Precast,
    Project,
    ProjectMember,
    ProjectStage,
    ProjectStockyard,
    Role,
)
from app.services.lifecycle import concrete_volume
from app.services.time_window import Bucket

logger = logging.getLogger(__name__)

ACTIVITY_STATUS_COLUMNS = (
    Activity.status,
    Activity.qc_status,
    Activity.mesh_mold_status,
    Activity.reinforcement_status,
    Activity.meshmold_qc_status,
    Activity.reinforcement_qc_status,
)


def activity_flagged(value: str) -> ColumnElement[bool]:
    """Open activity with any status column equal to ``value`` (Rejected, Hold)."""

    return and_(
        or_(*(column == value for column in ACTIVITY_STATUS_COLUMNS)),
        Activity.completed.is_(False),
    )


def activity_pending_qc() -> ColumnElement[bool]:
    """A production step finished but its QC sign-off is still open."""

    return or_(
        and_(Activity.mesh_mold_status == "completed", Activity.meshmold_qc_status != "completed"),
        and_(Activity.reinforcement_status == "completed", Activity.reinforcement_qc_status != "completed"),
        and_(Activity.status == "completed", Activity.qc_status != "completed"),
    )


def _bucket_index(column: ColumnElement, buckets: Sequence[Bucket]) -> ColumnElement[int]:
    return case(
        *[
            (and_(column >= bucket.start, column < bucket.end), index)
            for index, bucket in enumerate(buckets)
        ],
        else_=None,
    )


class DashboardRepository:
    """Persistence reads used by dashboard aggregation."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Projects ----------
    def get_project(self, project_id: int) -> Project | None:
        return self.db.scalar(select(Project).where(Project.project_id == project_id))

    def visible_project_ids(self, scope: ProjectScope, *, include_suspended: bool = False) -> Select:
        return select(Project.project_id).where(scope.clause(include_suspended=include_suspended))

    def list_visible_projects(self, scope: ProjectScope) -> list[Project]:
        return list(
            self.db.scalars(
                select(Project)
                .where(scope.clause())
                .order_by(Project.name.asc(), Project.project_id.asc())
            ).all()
        )

    # ---------- Hierarchy ----------
    def towers_with_child_counts(self, project_id: int) -> list[tuple[Precast, int]]:
        """Root nodes of a project with their direct child count, by name."""

        child = aliased(Precast)
        rows = self.db.execute(
            select(Precast, func.count(child.id))
            .outerjoin(child, and_(child.parent_id == Precast.id, child.project_id == Precast.project_id))
            .where(Precast.project_id == project_id, Precast.parent_id.is_(None))
            .group_by(Precast.id)
            .order_by(Precast.name.asc(), Precast.id.asc())
        ).all()
        return [(node, int(count)) for node, count in rows]

    # ---------- Stockyards ----------
    def managed_stockyard_ids(self, project_id: int, user_id: int) -> Select:
        return select(ProjectStockyard.stockyard_id).where(
            ProjectStockyard.project_id == project_id,
            ProjectStockyard.user_id == user_id,
        )

    # ---------- QC ----------
    def qc_user_ids(self, project_id: int, role_names: Sequence[str]) -> list[int]:
        return list(
            self.db.scalars(
                select(ProjectMember.user_id)
                .join(Role, Role.role_id == ProjectMember.role_id)
                .where(
                    and_(
                        ProjectMember.project_id == project_id,
                        Role.role_name.in_(list(role_names)),
                    )
                )
                .order_by(ProjectMember.user_id.asc())
            ).all()
        )

    def project_stage_names(self, project_id: int) -> list[str]:
        return list(
            self.db.scalars(
                select(ProjectStage.name)
                .where(ProjectStage.project_id == project_id)
                .order_by(ProjectStage.order.asc(), ProjectStage.id.asc())
            ).all()
        )

    # ---------- Optional metrics ----------
    def safe_scalar(self, stmt: Select, *, metric: str) -> int:
        """Scalar count that degrades to 0 instead of failing the whole dashboard."""

        try:
            return int(self.db.scalar(stmt) or 0)
        except SQLAlchemyError:
            logger.warning("Optional metric %s failed; reporting 0", metric, exc_info=True)
            self.db.rollback()
            return 0

    def safe_grouped_counts(self, stmt: Select, *, metric: str) -> dict[int, int]:
        """``{key: count}`` from a two-column grouped select, empty on failure."""

        try:
            return {key: int(count or 0) for key, count in self.db.execute(stmt).all()}
        except SQLAlchemyError:
            logger.warning("Optional metric %s failed; reporting 0", metric, exc_info=True)
            self.db.rollback()
            return {}

    # ---------- Bucketed series ----------
    def bucketed_element_totals(
        self,
        *,
        source: type,
        timestamp: ColumnElement,
        element_id: ColumnElement,
        buckets: Sequence[Bucket],
        conditions: Sequence[ColumnElement[bool]] = (),
    ) -> list[tuple[int, float]]:
        """Distinct elements and their concrete per bucket, in bucket order."""

        totals = [(0, 0.0)] * len(buckets)
        if not buckets:
            return totals

        bucket = _bucket_index(timestamp, buckets)
        per_element = (
            select(
                bucket.label("bucket"),
                element_id.label("element_id"),
                concrete_volume().label("concrete_m3"),
            )
            .select_from(source)
            .join(Element, Element.id == element_id)
            .join(ElementType, ElementType.element_type_id == Element.element_type_id)
            .where(
                *conditions,
                timestamp >= buckets[0].start,
                timestamp < buckets[-1].end,
            )
            .distinct()
            .subquery("per_element")
        )
        rows = self.db.execute(
            select(
                per_element.c.bucket,
                func.count().label("elements"),
                func.coalesce(func.sum(per_element.c.concrete_m3), 0.0).label("concrete"),
            )
            .where(per_element.c.bucket.is_not(None))
            .group_by(per_element.c.bucket)
        ).all()
        for row in rows:
            totals[int(row.bucket)] = (int(row.elements), float(row.concrete))
        return totals

    def bucketed_row_counts(
        self,
        *,
        source: type,
        timestamp: ColumnElement,
        buckets: Sequence[Bucket],
        conditions: Sequence[ColumnElement[bool]] = (),
    ) -> list[int]:
        counts = [0] * len(buckets)
        if not buckets:
            return counts

        bucketed = (
            select(_bucket_index(timestamp, buckets).label("bucket"))
            .select_from(source)
            .where(
                *conditions,
                timestamp >= buckets[0].start,
                timestamp < buckets[-1].end,
            )
            .subquery("bucketed")
        )
        rows = self.db.execute(
            select(bucketed.c.bucket, func.count().label("rows"))
            .where(bucketed.c.bucket.is_not(None))
            .group_by(bucketed.c.bucket)
        ).all()
        for row in rows:
            counts[int(row.bucket)] = int(row.rows)
        return counts
