"""Per-element lifecycle classification as a reusable subquery."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import ColumnElement, Subquery, and_, case, func, select, true

from app.models.entities import Element, ElementType, PrecastStock
from app.services.time_window import TimeWindow

ERECTED = "erected"
DISPATCHED = "dispatched"
PRODUCED = "produced"
NOT_IN_PRODUCTION = "notinproduction"


def in_window(column: ColumnElement, window: TimeWindow | None) -> ColumnElement[bool]:
    """``start <= column < end``; no predicate at all without a window."""

    if window is None:
        return true()
    return and_(column >= window.start, column < window.end)


def concrete_volume() -> ColumnElement[float]:
    """Element volume in m3 from millimetre dimensions; NULL dimensions give 0."""

    return func.coalesce(
        ElementType.thickness * ElementType.length * ElementType.height / 1_000_000_000.0,
        0.0,
    )


def _flag(condition: ColumnElement[bool]) -> ColumnElement[int]:
    return case((condition, 1), else_=0)


def element_lifecycle(
    project_id: int,
    hierarchy_ids: Sequence[int] | None,
    window: TimeWindow | None,
) -> Subquery:
    """One row per element with its lifecycle class under ``window``.

    Class priority is erected, dispatched, produced, then notinproduction.
    ``is_produced`` and ``is_dispatched`` are independent of the class so an
    element dispatched or erected inside the window still counts as produced
    when its production date falls inside it too.
    """

    has_stock = PrecastStock.id.is_not(None)
    produced = and_(has_stock, in_window(PrecastStock.production_date, window))
    dispatched = and_(
        has_stock,
        PrecastStock.dispatch_status.is_(True),
        in_window(PrecastStock.dispatch_start, window),
    )
    erected = and_(
        has_stock,
        PrecastStock.erected.is_(True),
        in_window(PrecastStock.updated_at, window),
    )

    lifecycle_class = case(
        (erected, ERECTED),
        (dispatched, DISPATCHED),
        (produced, PRODUCED),
        else_=NOT_IN_PRODUCTION,
    )

    stmt = (
        select(
            Element.id.label("element_id"),
            Element.project_id.label("project_id"),
            Element.target_location.label("target_location"),
            ElementType.element_type_id.label("type_id"),
            ElementType.element_type.label("type_code"),
            ElementType.element_type_name.label("type_name"),
            lifecycle_class.label("lifecycle_class"),
            _flag(produced).label("is_produced"),
            _flag(dispatched).label("is_dispatched"),
            _flag(erected).label("is_erected"),
            concrete_volume().label("concrete_m3"),
        )
        .select_from(Element)
        .join(ElementType, ElementType.element_type_id == Element.element_type_id)
        .outerjoin(PrecastStock, PrecastStock.element_id == Element.id)
        .where(Element.project_id == project_id)
    )
    if hierarchy_ids is not None:
        stmt = stmt.where(Element.target_location.in_(list(hierarchy_ids)))
    return stmt.subquery("element_lifecycle")
