"""Project visibility scopes rendered as SQLAlchemy clauses."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import ColumnElement, and_, exists, select, true

from app.models.entities import Client, EndClient, Project, ProjectMember


class ProjectScope:
    """Capability describing which projects an actor may read."""

    def visibility(self) -> ColumnElement[bool]:
        raise NotImplementedError

    def clause(self, *, include_suspended: bool = False) -> ColumnElement[bool]:
        """Boolean clause over ``Project`` columns with bound parameters."""

        visible = self.visibility()
        if include_suspended:
            return visible
        return and_(visible, Project.suspend.is_(False))


@dataclass(frozen=True)
class AllProjects(ProjectScope):
    def visibility(self) -> ColumnElement[bool]:
        return true()


@dataclass(frozen=True)
class ByClientOwner(ProjectScope):
    """Projects whose end client belongs to a client record owned by the user."""

    user_id: int

    def visibility(self) -> ColumnElement[bool]:
        owned_end_clients = (
            select(EndClient.id)
            .join(Client, EndClient.client_id == Client.client_id)
            .where(Client.user_id == self.user_id)
        )
        return Project.client_id.in_(owned_end_clients)


@dataclass(frozen=True)
class ByMembership(ProjectScope):
    user_id: int

    def visibility(self) -> ColumnElement[bool]:
        return exists().where(
            and_(
                ProjectMember.project_id == Project.project_id,
                ProjectMember.user_id == self.user_id,
            )
        )
