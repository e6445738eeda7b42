"""Tower/floor tree of a project's precast hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.entities import Precast


@dataclass(frozen=True, slots=True)
class Floor:
    id: int
    name: str
    parent_id: int | None


@dataclass(slots=True)
class Tower:
    id: int
    name: str
    floors: list[Floor] = field(default_factory=list)

    @property
    def node_ids(self) -> list[int]:
        """Floor ids only; a tower row is the sum of its floors."""

        return [floor.id for floor in self.floors]


@dataclass(slots=True)
class ProjectHierarchy:
    project_id: int
    towers: list[Tower] = field(default_factory=list)
    single_floors: list[Floor] = field(default_factory=list)

    @property
    def node_ids(self) -> list[int]:
        ids: list[int] = []
        for tower in self.towers:
            ids.extend(tower.node_ids)
        ids.extend(floor.id for floor in self.single_floors)
        return ids

    @property
    def is_empty(self) -> bool:
        return not self.towers and not self.single_floors

    def tower(self, tower_id: int) -> Tower | None:
        for tower in self.towers:
            if tower.id == tower_id:
                return tower
        return None

    def only_tower(self, tower_id: int) -> ProjectHierarchy | None:
        tower = self.tower(tower_id)
        if tower is None:
            return None
        return ProjectHierarchy(project_id=self.project_id, towers=[tower])

    def subset(self, ids: list[int]) -> ProjectHierarchy:
        """Restrict to ``ids``; a requested tower keeps all of its floors."""

        wanted = set(ids)
        towers: list[Tower] = []
        for tower in self.towers:
            if tower.id in wanted:
                towers.append(tower)
                continue
            floors = [floor for floor in tower.floors if floor.id in wanted]
            if floors:
                towers.append(Tower(id=tower.id, name=tower.name, floors=floors))
        single_floors = [floor for floor in self.single_floors if floor.id in wanted]
        return ProjectHierarchy(project_id=self.project_id, towers=towers, single_floors=single_floors)


class HierarchyResolver:
    def __init__(self, db: Session) -> None:
        self.db = db

    def resolve(self, project_id: int) -> ProjectHierarchy:
        nodes = self.db.scalars(
            select(Precast)
            .where(Precast.project_id == project_id)
            .order_by(Precast.name.asc(), Precast.id.asc())
        ).all()
        return build_hierarchy(project_id, [(node.id, node.name, node.parent_id) for node in nodes])


def build_hierarchy(project_id: int, nodes: list[tuple[int, str, int | None]]) -> ProjectHierarchy:
    """Assemble the tree from ``(id, name, parent_id)`` rows already in display order."""

    towers: dict[int, Tower] = {}
    for node_id, name, parent_id in nodes:
        if parent_id is None:
            towers[node_id] = Tower(id=node_id, name=name)

    single_floors: list[Floor] = []
    for node_id, name, parent_id in nodes:
        if parent_id is None:
            continue
        floor = Floor(id=node_id, name=name, parent_id=parent_id)
        parent = towers.get(parent_id)
        if parent is None:
            single_floors.append(floor)
        else:
            parent.floors.append(floor)

    return ProjectHierarchy(project_id=project_id, towers=list(towers.values()), single_floors=single_floors)
