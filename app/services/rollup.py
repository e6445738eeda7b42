"""Bulk rollups over the element lifecycle view."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, fields

from sqlalchemy import Subquery, case, func, select
from sqlalchemy.orm import Session

from app.services.lifecycle import NOT_IN_PRODUCTION, element_lifecycle
from app.services.time_window import TimeWindow

SUMMARY_KEYS = (
    "totalelement",
    "production",
    "balance",
    "dispatch",
    "stockyard",
    "erected",
    "notinproduction",
    "erectedbalance",
)


@dataclass(slots=True)
class Metrics:
    """Primary ``(count, concrete)`` pairs; the rest is derived on read."""

    total: int = 0
    total_concrete: float = 0.0
    produced: int = 0
    produced_concrete: float = 0.0
    dispatched: int = 0
    dispatched_concrete: float = 0.0
    erected: int = 0
    erected_concrete: float = 0.0
    notinproduction: int = 0
    notinproduction_concrete: float = 0.0

    @property
    def stockyard(self) -> int:
        return max(0, self.produced - self.dispatched)

    @property
    def stockyard_concrete(self) -> float:
        return max(0.0, self.produced_concrete - self.dispatched_concrete)

    @property
    def balance(self) -> int:
        return self.total - self.produced

    @property
    def balance_concrete(self) -> float:
        return self.total_concrete - self.produced_concrete

    @property
    def erected_balance(self) -> int:
        return max(0, self.dispatched - self.erected)

    @property
    def erected_balance_concrete(self) -> float:
        return max(0.0, self.dispatched_concrete - self.erected_concrete)

    def __add__(self, other: Metrics) -> Metrics:
        return Metrics(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(Metrics)})

    @classmethod
    def combine(cls, parts: Iterable[Metrics]) -> Metrics:
        combined = cls()
        for part in parts:
            combined = combined + part
        return combined

    def counts(self) -> dict[str, int]:
        return {
            "totalelement": self.total,
            "production": self.produced,
            "balance": self.balance,
            "dispatch": self.dispatched,
            "stockyard": self.stockyard,
            "erected": self.erected,
            "notinproduction": self.notinproduction,
            "erectedbalance": self.erected_balance,
        }

    def as_dict(self) -> dict[str, object]:
        """JSON shape: counts first, then the ``*_concrete`` values rounded to 2 places."""

        concrete = {
            "totalelement": self.total_concrete,
            "production": self.produced_concrete,
            "balance": self.balance_concrete,
            "dispatch": self.dispatched_concrete,
            "stockyard": self.stockyard_concrete,
            "erected": self.erected_concrete,
            "notinproduction": self.notinproduction_concrete,
            "erectedbalance": self.erected_balance_concrete,
        }
        payload: dict[str, object] = dict(self.counts())
        for key in SUMMARY_KEYS:
            payload[f"{key}_concrete"] = round(concrete[key], 2)
        return payload


@dataclass(slots=True)
class TypeConcrete:
    """Cumulative concrete of one element type at one node, ignoring any window."""

    type_id: int
    type_code: str
    total: float = 0.0
    produced: float = 0.0
    dispatched: float = 0.0
    erected: float = 0.0

    @property
    def stockyard(self) -> float:
        return max(0.0, self.produced - self.dispatched)

    def __add__(self, other: TypeConcrete) -> TypeConcrete:
        return TypeConcrete(
            type_id=self.type_id,
            type_code=self.type_code,
            total=self.total + other.total,
            produced=self.produced + other.produced,
            dispatched=self.dispatched + other.dispatched,
            erected=self.erected + other.erected,
        )

    def as_dict(self) -> dict[str, object]:
        return {
            "produced": round(self.produced, 2),
            "dispatched": round(self.dispatched, 2),
            "erected": round(self.erected, 2),
            "stockyard": round(self.stockyard, 2),
            "total": round(self.total, 2),
        }


def _metric_columns(lifecycle: Subquery) -> list:
    concrete = lifecycle.c.concrete_m3
    notinproduction = case((lifecycle.c.lifecycle_class == NOT_IN_PRODUCTION, 1), else_=0)
    return [
        func.count().label("total"),
        func.coalesce(func.sum(concrete), 0.0).label("total_concrete"),
        func.coalesce(func.sum(lifecycle.c.is_produced), 0).label("produced"),
        func.coalesce(func.sum(lifecycle.c.is_produced * concrete), 0.0).label("produced_concrete"),
        func.coalesce(func.sum(lifecycle.c.is_dispatched), 0).label("dispatched"),
        func.coalesce(func.sum(lifecycle.c.is_dispatched * concrete), 0.0).label("dispatched_concrete"),
        func.coalesce(func.sum(lifecycle.c.is_erected), 0).label("erected"),
        func.coalesce(func.sum(lifecycle.c.is_erected * concrete), 0.0).label("erected_concrete"),
        func.coalesce(func.sum(notinproduction), 0).label("notinproduction"),
        func.coalesce(func.sum(notinproduction * concrete), 0.0).label("notinproduction_concrete"),
    ]


def _metrics_from_row(row) -> Metrics:
    return Metrics(
        total=int(row.total),
        total_concrete=float(row.total_concrete),
        produced=int(row.produced),
        produced_concrete=float(row.produced_concrete),
        dispatched=int(row.dispatched),
        dispatched_concrete=float(row.dispatched_concrete),
        erected=int(row.erected),
        erected_concrete=float(row.erected_concrete),
        notinproduction=int(row.notinproduction),
        notinproduction_concrete=float(row.notinproduction_concrete),
    )


class RollupEngine:
    """Grouped lifecycle counts for a set of hierarchy nodes, one query per grain."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def counts_by_hierarchy(
        self,
        project_id: int,
        hierarchy_ids: Sequence[int],
        window: TimeWindow | None,
    ) -> dict[int, Metrics]:
        result = {hierarchy_id: Metrics() for hierarchy_id in hierarchy_ids}
        if not hierarchy_ids:
            return result

        lifecycle = element_lifecycle(project_id, hierarchy_ids, window)
        rows = self.db.execute(
            select(lifecycle.c.target_location, *_metric_columns(lifecycle)).group_by(lifecycle.c.target_location)
        ).all()
        for row in rows:
            result[row.target_location] = _metrics_from_row(row)
        return result

    def counts_by_element_type(
        self,
        project_id: int,
        hierarchy_ids: Sequence[int],
        window: TimeWindow | None,
    ) -> dict[int, dict[str, Metrics]]:
        result: dict[int, dict[str, Metrics]] = {hierarchy_id: {} for hierarchy_id in hierarchy_ids}
        if not hierarchy_ids:
            return result

        lifecycle = element_lifecycle(project_id, hierarchy_ids, window)
        rows = self.db.execute(
            select(lifecycle.c.target_location, lifecycle.c.type_code, *_metric_columns(lifecycle))
            .group_by(lifecycle.c.target_location, lifecycle.c.type_code)
            .order_by(lifecycle.c.target_location, lifecycle.c.type_code)
        ).all()
        for row in rows:
            by_type = result[row.target_location]
            metrics = _metrics_from_row(row)
            # Distinct element types may share a short code; merge them.
            by_type[row.type_code] = by_type[row.type_code] + metrics if row.type_code in by_type else metrics
        return result

    def cumulative_concrete_by_type(
        self,
        project_id: int,
        hierarchy_ids: Sequence[int],
    ) -> dict[int, dict[int, TypeConcrete]]:
        result: dict[int, dict[int, TypeConcrete]] = {hierarchy_id: {} for hierarchy_id in hierarchy_ids}
        if not hierarchy_ids:
            return result

        lifecycle = element_lifecycle(project_id, hierarchy_ids, None)
        concrete = lifecycle.c.concrete_m3
        rows = self.db.execute(
            select(
                lifecycle.c.target_location,
                lifecycle.c.type_id,
                lifecycle.c.type_code,
                func.coalesce(func.sum(concrete), 0.0).label("total"),
                func.coalesce(func.sum(lifecycle.c.is_produced * concrete), 0.0).label("produced"),
                func.coalesce(func.sum(lifecycle.c.is_dispatched * concrete), 0.0).label("dispatched"),
                func.coalesce(func.sum(lifecycle.c.is_erected * concrete), 0.0).label("erected"),
            )
            .group_by(lifecycle.c.target_location, lifecycle.c.type_id, lifecycle.c.type_code)
            .order_by(lifecycle.c.target_location, lifecycle.c.type_code, lifecycle.c.type_id)
        ).all()
        for row in rows:
            result[row.target_location][row.type_id] = TypeConcrete(
                type_id=row.type_id,
                type_code=row.type_code,
                total=float(row.total),
                produced=float(row.produced),
                dispatched=float(row.dispatched),
                erected=float(row.erected),
            )
        return result


def combine_by_type(parts: Iterable[dict[str, Metrics]]) -> dict[str, Metrics]:
    """Merge per-node type maps, keeping type codes sorted."""

    merged: dict[str, Metrics] = {}
    for part in parts:
        for type_code, metrics in part.items():
            merged[type_code] = merged[type_code] + metrics if type_code in merged else metrics
    return dict(sorted(merged.items()))


def combine_concrete_by_type(parts: Iterable[dict[int, TypeConcrete]]) -> dict[int, TypeConcrete]:
    merged: dict[int, TypeConcrete] = {}
    for part in parts:
        for type_id, concrete in part.items():
            merged[type_id] = merged[type_id] + concrete if type_id in merged else concrete
    return dict(sorted(merged.items(), key=lambda item: (item[1].type_code, item[0])))
