from __future__ import annotations

from datetime import datetime

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.services.dashboard_service import DashboardService
from app.services.rollup import Metrics
from app.services.time_window import resolve_window
from tests.seed import create_element, create_element_type, create_node, create_project, create_stock

JANUARY_2025 = resolve_window("monthly", year=2025, month=1)


def _single_element_project(db: Session):
    project = create_project(db, name="Riverside")
    tower = create_node(db, project, "Tower 1")
    floor = create_node(db, project, "Floor 1", tower)
    wall = create_element_type(db, project, "WL")
    element = create_element(db, project, wall, floor)
    return project, element


def _breakdown(db: Session, project_id: int, window=None):
    return DashboardService(db).project_breakdown(project_id=project_id, window=window)


def test_unproduced_element_counts_toward_balance(db_session: Session) -> None:
    project, _ = _single_element_project(db_session)

    summary = _breakdown(db_session, project.project_id).as_dict()

    assert summary["totalelement"] == 1
    assert summary["totalelement_concrete"] == 3.0
    assert summary["production"] == 0
    assert summary["balance"] == 1
    assert summary["balance_concrete"] == 3.0
    assert summary["dispatch"] == 0
    assert summary["stockyard"] == 0
    assert summary["erected"] == 0
    assert summary["erectedbalance"] == 0
    assert summary["notinproduction"] == 1


def test_produced_element_sits_in_stockyard(db_session: Session) -> None:
    project, element = _single_element_project(db_session)
    create_stock(db_session, element, production_date=datetime(2025, 1, 15))

    total = _breakdown(db_session, project.project_id, JANUARY_2025).total

    assert total.produced == 1
    assert total.produced_concrete == 3.0
    assert total.stockyard == 1
    assert total.stockyard_concrete == 3.0
    assert total.dispatched == 0
    assert total.erected == 0


def test_dispatched_element_leaves_stockyard(db_session: Session) -> None:
    project, element = _single_element_project(db_session)
    create_stock(
        db_session,
        element,
        production_date=datetime(2025, 1, 15),
        dispatch_status=True,
        dispatch_start=datetime(2025, 1, 20),
    )

    total = _breakdown(db_session, project.project_id, JANUARY_2025).total

    assert total.produced == 1
    assert total.dispatched == 1
    assert total.stockyard == 0
    assert total.erected_balance == 1


def test_erected_element_closes_erection_balance(db_session: Session) -> None:
    project, element = _single_element_project(db_session)
    create_stock(
        db_session,
        element,
        production_date=datetime(2025, 1, 15),
        dispatch_status=True,
        dispatch_start=datetime(2025, 1, 20),
        erected=True,
        updated_at=datetime(2025, 1, 25),
    )

    total = _breakdown(db_session, project.project_id, JANUARY_2025).total

    assert total.erected == 1
    assert total.erected_balance == 0
    assert total.stockyard == 0


def test_activity_outside_window_is_not_counted(db_session: Session) -> None:
    project, element = _single_element_project(db_session)
    create_stock(db_session, element, production_date=datetime(2024, 12, 31, 23, 59))

    total = _breakdown(db_session, project.project_id, JANUARY_2025).total

    assert total.total == 1
    assert total.produced == 0
    assert total.notinproduction == 1


def test_tower_rows_sum_floor_rows(db_session: Session) -> None:
    project = create_project(db_session, name="Twin Floors")
    tower = create_node(db_session, project, "Tower 1")
    floor_1 = create_node(db_session, project, "Floor 1", tower)
    floor_2 = create_node(db_session, project, "Floor 2", tower)
    wall = create_element_type(db_session, project, "WL")
    slab = create_element_type(db_session, project, "SL", thickness=150, length=4000, height=2000)
    create_stock(db_session, create_element(db_session, project, wall, floor_1), production_date=datetime(2025, 1, 10))
    create_stock(db_session, create_element(db_session, project, slab, floor_2), production_date=datetime(2025, 1, 11))

    breakdown = _breakdown(db_session, project.project_id, JANUARY_2025)
    tower_row = breakdown.towers[0]

    assert breakdown.total.total == 2
    assert breakdown.total.produced == 2
    assert tower_row.metrics == Metrics.combine(floor.metrics for floor in tower_row.floors)
    assert Metrics.combine(tower_row.element_types.values()) == tower_row.metrics
    assert list(tower_row.element_types) == ["SL", "WL"]
    for floor in tower_row.floors:
        assert Metrics.combine(floor.element_types.values()) == floor.metrics


def test_weekly_window_excludes_day_before_start(db_session: Session) -> None:
    project = create_project(db_session, name="Weekly")
    tower = create_node(db_session, project, "Tower 1")
    floor = create_node(db_session, project, "Floor 1", tower)
    wall = create_element_type(db_session, project, "WL")
    for produced_at in (
        datetime(2025, 1, 8, 12),
        datetime(2025, 1, 9),
        datetime(2025, 1, 15, 23, 30),
        datetime(2025, 1, 16),
    ):
        create_stock(db_session, create_element(db_session, project, wall, floor), production_date=produced_at)

    window = resolve_window("weekly", year=2025, month=1, day=15)
    breakdown = _breakdown(db_session, project.project_id, window)

    assert breakdown.total.total == 4
    assert breakdown.total.produced == 2


def test_floor_totals_equal_project_totals(db_session: Session) -> None:
    project = create_project(db_session, name="Mixed")
    tower = create_node(db_session, project, "Tower 1")
    floors = [create_node(db_session, project, f"Floor {index}", tower) for index in range(1, 4)]
    podium = create_node(db_session, project, "Podium", floors[0])
    wall = create_element_type(db_session, project, "WL")
    for index, floor in enumerate([*floors, podium]):
        element = create_element(db_session, project, wall, floor)
        create_stock(
            db_session,
            element,
            production_date=datetime(2025, 1, 2 + index),
            dispatch_status=index % 2 == 0,
            dispatch_start=datetime(2025, 1, 20),
        )
        create_element(db_session, project, wall, floor)

    breakdown = _breakdown(db_session, project.project_id, JANUARY_2025)
    floor_sum = Metrics.combine(floor.metrics for floor in breakdown.floors)

    assert floor_sum == breakdown.total
    assert breakdown.total.total == 8
    assert breakdown.total.produced == 4
    assert breakdown.total.dispatched == 2
    for node in breakdown.floors:
        metrics = node.metrics
        assert metrics.stockyard == max(0, metrics.produced - metrics.dispatched)
        assert metrics.erected_balance == max(0, metrics.dispatched - metrics.erected)
        assert metrics.balance == metrics.total - metrics.produced


def test_doubling_dimensions_doubles_concrete(db_session: Session) -> None:
    totals = []
    for name, thickness in (("Base", 200), ("Double", 400)):
        project = create_project(db_session, name=name)
        tower = create_node(db_session, project, "Tower 1")
        floor = create_node(db_session, project, "Floor 1", tower)
        element_type = create_element_type(db_session, project, "WL", thickness=thickness)
        create_stock(
            db_session,
            create_element(db_session, project, element_type, floor),
            production_date=datetime(2025, 1, 5),
        )
        create_element(db_session, project, element_type, floor)
        totals.append(_breakdown(db_session, project.project_id, JANUARY_2025).total)

    base, double = totals
    assert double.counts() == base.counts()
    assert double.total_concrete == pytest.approx(2 * base.total_concrete)
    assert double.produced_concrete == pytest.approx(2 * base.produced_concrete)


def test_missing_dimensions_count_as_zero_concrete(db_session: Session) -> None:
    project = create_project(db_session, name="Unsized")
    tower = create_node(db_session, project, "Tower 1")
    floor = create_node(db_session, project, "Floor 1", tower)
    element_type = create_element_type(db_session, project, "CL", thickness=None)
    create_element(db_session, project, element_type, floor)

    total = _breakdown(db_session, project.project_id).total

    assert total.total == 1
    assert total.total_concrete == 0.0


def test_tower_filter_rejects_floor_id(db_session: Session) -> None:
    project, element = _single_element_project(db_session)

    with pytest.raises(HTTPException) as exc_info:
        DashboardService(db_session).project_breakdown(
            project_id=project.project_id,
            window=None,
            tower_id=element.target_location,
        )

    assert exc_info.value.status_code == 400


def test_cumulative_concrete_ignores_window(db_session: Session) -> None:
    project, element = _single_element_project(db_session)
    create_stock(db_session, element, production_date=datetime(2023, 6, 1))

    breakdown = DashboardService(db_session).project_breakdown(
        project_id=project.project_id,
        window=JANUARY_2025,
        include_concrete_by_type=True,
    )
    concrete = list(breakdown.towers[0].concrete_by_type.values())

    assert breakdown.total.produced == 0
    assert len(concrete) == 1
    assert concrete[0].produced == 3.0
    assert concrete[0].stockyard == 3.0


def test_element_pinned_to_tower_node_stays_out_of_totals(db_session: Session) -> None:
    project = create_project(db_session, name="Pinned")
    tower = create_node(db_session, project, "Tower 1")
    floor = create_node(db_session, project, "Floor 1", tower)
    wall = create_element_type(db_session, project, "WL")
    create_element(db_session, project, wall, floor)
    create_element(db_session, project, wall, tower)

    breakdown = _breakdown(db_session, project.project_id)
    floor_sum = Metrics.combine(node.metrics for node in breakdown.floors)

    assert floor_sum == breakdown.total
    assert breakdown.total.total == 1
    assert breakdown.towers[0].metrics == breakdown.towers[0].floors[0].metrics
