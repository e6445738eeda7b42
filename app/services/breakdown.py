"""Nested project → tower → floor → element-type rollup shared by every renderer."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from app.services.hierarchy import Floor, ProjectHierarchy, Tower
from app.services.rollup import (
    Metrics,
    RollupEngine,
    TypeConcrete,
    combine_by_type,
    combine_concrete_by_type,
)
from app.services.time_window import TimeWindow


def natural_key(name: str) -> tuple:
    """Sort key treating digit runs as numbers, so "Floor 2" precedes "Floor 10"."""

    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
        for part in re.split(r"(\d+)", name)
        if part
    )


@dataclass(slots=True)
class NodeRollup:
    id: int
    name: str
    metrics: Metrics
    element_types: dict[str, Metrics] = field(default_factory=dict)
    concrete_by_type: dict[int, TypeConcrete] = field(default_factory=dict)

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            **self.metrics.as_dict(),
            "element_types": [
                {"element_type": type_code, **metrics.as_dict()}
                for type_code, metrics in self.element_types.items()
            ],
        }


@dataclass(slots=True)
class TowerRollup(NodeRollup):
    floors: list[NodeRollup] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        payload = {
            "id": self.id,
            "name": self.name,
            **self.metrics.as_dict(),
            "floors": [floor.as_dict() for floor in self.floors],
        }
        payload["element_types"] = [
            {"element_type": type_code, **metrics.as_dict()}
            for type_code, metrics in self.element_types.items()
        ]
        return payload


@dataclass(slots=True)
class ProjectBreakdown:
    project_id: int
    window: TimeWindow | None
    total: Metrics
    towers: list[TowerRollup] = field(default_factory=list)
    single_floors: list[NodeRollup] = field(default_factory=list)
    element_types: dict[str, Metrics] = field(default_factory=dict)

    @property
    def floors(self) -> list[NodeRollup]:
        """Every floor, tower floors first, then standalone floors."""

        return [floor for tower in self.towers for floor in tower.floors] + list(self.single_floors)

    def as_dict(self) -> dict[str, object]:
        return {
            **self.total.as_dict(),
            "towers": [tower.as_dict() for tower in self.towers],
            "floors": [floor.as_dict() for floor in self.single_floors],
        }


def build_breakdown(
    engine: RollupEngine,
    hierarchy: ProjectHierarchy,
    window: TimeWindow | None,
    *,
    include_concrete_by_type: bool = False,
    natural_order: bool = False,
) -> ProjectBreakdown:
    """Query every node once per grain and compose towers and the project from floors."""

    node_ids = hierarchy.node_ids
    by_node = engine.counts_by_hierarchy(hierarchy.project_id, node_ids, window)
    by_type = engine.counts_by_element_type(hierarchy.project_id, node_ids, window)
    concrete: dict[int, dict[int, TypeConcrete]] = {}
    if include_concrete_by_type:
        concrete = engine.cumulative_concrete_by_type(hierarchy.project_id, node_ids)

    def node_rollup(node_id: int, name: str) -> NodeRollup:
        return NodeRollup(
            id=node_id,
            name=name,
            metrics=by_node.get(node_id, Metrics()),
            element_types=combine_by_type([by_type.get(node_id, {})]),
            concrete_by_type=combine_concrete_by_type([concrete.get(node_id, {})]),
        )

    def floor_rollups(floors: list[Floor]) -> list[NodeRollup]:
        ordered = sorted(floors, key=lambda floor: natural_key(floor.name)) if natural_order else floors
        return [node_rollup(floor.id, floor.name) for floor in ordered]

    def tower_rollup(tower: Tower) -> TowerRollup:
        floors = floor_rollups(tower.floors)
        return TowerRollup(
            id=tower.id,
            name=tower.name,
            metrics=Metrics.combine(floor.metrics for floor in floors),
            element_types=combine_by_type(floor.element_types for floor in floors),
            concrete_by_type=combine_concrete_by_type(floor.concrete_by_type for floor in floors),
            floors=floors,
        )

    towers_in_order = (
        sorted(hierarchy.towers, key=lambda tower: natural_key(tower.name)) if natural_order else hierarchy.towers
    )
    towers = [tower_rollup(tower) for tower in towers_in_order]
    single_floors = floor_rollups(hierarchy.single_floors)
    top_level: list[NodeRollup] = [*towers, *single_floors]

    return ProjectBreakdown(
        project_id=hierarchy.project_id,
        window=window,
        total=Metrics.combine(node.metrics for node in top_level),
        towers=towers,
        single_floors=single_floors,
        element_types=combine_by_type(node.element_types for node in top_level),
    )
