from __future__ import annotations

from app.services import views
from app.services.rollup import Metrics


def _metrics() -> Metrics:
    return Metrics(
        total=10,
        total_concrete=30.0,
        produced=6,
        produced_concrete=18.0,
        dispatched=4,
        dispatched_concrete=12.0,
        erected=1,
        erected_concrete=3.0,
        notinproduction=4,
        notinproduction_concrete=12.0,
    )


def test_derived_metrics() -> None:
    metrics = _metrics()

    assert metrics.balance == 4
    assert metrics.stockyard == 2
    assert metrics.erected_balance == 3
    assert metrics.stockyard_concrete == 6.0


def test_view_columns() -> None:
    def labels(view: str) -> list[str]:
        return [column.label for column in views.columns_for(view)]

    assert labels("production") == ["Total", "Produced", "Balance"]
    assert labels("stockyard") == ["Total", "Dispatched", "Stockyard"]
    assert labels("dispatch") == ["Total", "Dispatched"]
    assert labels("erected") == ["Total", "Erected", "Er. Balance"]
    assert len(labels("all")) == 7


def test_unknown_view_falls_back_to_all() -> None:
    assert views.resolve_view("bogus") == "all"
    assert views.resolve_view(None) == "all"
    assert views.resolve_view(" Erected ") == "erected"


def test_all_view_contains_every_narrower_view() -> None:
    metrics = _metrics()
    full = views.project(metrics, "all")

    for view in ("production", "stockyard", "dispatch", "erected"):
        narrow = views.project(metrics, view)
        assert set(narrow) <= set(full)
        for key, value in narrow.items():
            assert full[key] == value


def test_cells_and_headers() -> None:
    assert views.headers("dispatch") == ["Total\n(nos./ cum.)", "Dispatched\n(nos./ cum.)"]
    assert views.cells(_metrics(), "dispatch") == ["10 / 30.00", "4 / 12.00"]
