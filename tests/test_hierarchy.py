from __future__ import annotations

from sqlalchemy.orm import Session

from app.services.hierarchy import HierarchyResolver, build_hierarchy
from tests.seed import create_node, create_project


def test_build_hierarchy_splits_towers_and_single_floors() -> None:
    hierarchy = build_hierarchy(
        1,
        [
            (10, "Tower A", None),
            (11, "Floor 1", 10),
            (12, "Floor 2", 10),
            (20, "Podium", 99),
        ],
    )

    assert [tower.name for tower in hierarchy.towers] == ["Tower A"]
    assert [floor.id for floor in hierarchy.towers[0].floors] == [11, 12]
    assert [floor.name for floor in hierarchy.single_floors] == ["Podium"]
    assert hierarchy.node_ids == [11, 12, 20]
    assert hierarchy.is_empty is False


def test_subset_keeps_all_floors_of_requested_tower() -> None:
    hierarchy = build_hierarchy(
        1,
        [
            (10, "Tower A", None),
            (11, "Floor 1", 10),
            (12, "Floor 2", 10),
            (30, "Tower B", None),
            (31, "Floor 1", 30),
            (32, "Floor 2", 30),
        ],
    )

    subset = hierarchy.subset([10, 32])

    assert [tower.id for tower in subset.towers] == [10, 30]
    assert [floor.id for floor in subset.towers[0].floors] == [11, 12]
    assert [floor.id for floor in subset.towers[1].floors] == [32]


def test_only_tower_rejects_floor_ids() -> None:
    hierarchy = build_hierarchy(1, [(10, "Tower A", None), (11, "Floor 1", 10)])

    assert hierarchy.only_tower(11) is None
    assert hierarchy.only_tower(10).node_ids == [11]


def test_resolver_loads_project_nodes_in_name_order(db_session: Session) -> None:
    project = create_project(db_session, name="Harbour View")
    other = create_project(db_session, name="Elsewhere")
    tower_b = create_node(db_session, project, "Tower B")
    tower_a = create_node(db_session, project, "Tower A")
    create_node(db_session, project, "Level 2", tower_a)
    create_node(db_session, project, "Level 1", tower_a)
    create_node(db_session, other, "Tower Z")

    hierarchy = HierarchyResolver(db_session).resolve(project.project_id)

    assert [tower.name for tower in hierarchy.towers] == ["Tower A", "Tower B"]
    assert [floor.name for floor in hierarchy.towers[0].floors] == ["Level 1", "Level 2"]
    assert hierarchy.towers[1].id == tower_b.id
    assert hierarchy.single_floors == []


def test_resolver_returns_empty_hierarchy(db_session: Session) -> None:
    project = create_project(db_session, name="Greenfield")

    assert HierarchyResolver(db_session).resolve(project.project_id).is_empty is True
