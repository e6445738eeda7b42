"""Column subsets of a rollup for each dashboard view."""

from __future__ import annotations

from dataclasses import dataclass

from app.services.rollup import Metrics

DEFAULT_VIEW = "all"


@dataclass(frozen=True, slots=True)
class MetricColumn:
    key: str
    label: str
    count_attr: str
    concrete_attr: str

    @property
    def header(self) -> str:
        return f"{self.label}\n(nos./ cum.)"

    def count(self, metrics: Metrics) -> int:
        return getattr(metrics, self.count_attr)

    def concrete(self, metrics: Metrics) -> float:
        return getattr(metrics, self.concrete_attr)

    def cell(self, metrics: Metrics) -> str:
        return f"{self.count(metrics)} / {self.concrete(metrics):.2f}"


TOTAL = MetricColumn("total", "Total", "total", "total_concrete")
PRODUCED = MetricColumn("produced", "Produced", "produced", "produced_concrete")
BALANCE = MetricColumn("balance", "Balance", "balance", "balance_concrete")
DISPATCHED = MetricColumn("dispatched", "Dispatched", "dispatched", "dispatched_concrete")
STOCKYARD = MetricColumn("stockyard", "Stockyard", "stockyard", "stockyard_concrete")
ERECTED = MetricColumn("erected", "Erected", "erected", "erected_concrete")
ERECTED_BALANCE = MetricColumn("erected_balance", "Er. Balance", "erected_balance", "erected_balance_concrete")

VIEW_COLUMNS: dict[str, tuple[MetricColumn, ...]] = {
    "all": (TOTAL, PRODUCED, BALANCE, DISPATCHED, STOCKYARD, ERECTED, ERECTED_BALANCE),
    "production": (TOTAL, PRODUCED, BALANCE),
    "stockyard": (TOTAL, DISPATCHED, STOCKYARD),
    "dispatch": (TOTAL, DISPATCHED),
    "erected": (TOTAL, ERECTED, ERECTED_BALANCE),
}


def resolve_view(view: str | None) -> str:
    """Normalized view name; anything unknown falls back to ``all``."""

    normalized = (view or "").strip().lower()
    return normalized if normalized in VIEW_COLUMNS else DEFAULT_VIEW


def columns_for(view: str | None) -> tuple[MetricColumn, ...]:
    return VIEW_COLUMNS[resolve_view(view)]


def headers(view: str | None) -> list[str]:
    return [column.header for column in columns_for(view)]


def cells(metrics: Metrics, view: str | None) -> list[str]:
    return [column.cell(metrics) for column in columns_for(view)]


def project(metrics: Metrics, view: str | None) -> dict[str, dict[str, object]]:
    """Structured projection behind the breakdown CSV and XLSX rows."""

    return {
        column.key: {"count": column.count(metrics), "concrete": round(column.concrete(metrics), 2)}
        for column in columns_for(view)
    }
