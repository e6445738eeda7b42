"""Session authentication and project visibility guards."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from app.core.scope import AllProjects, ByClientOwner, ByMembership, ProjectScope
from app.db.dependencies import get_db_session
from app.models.entities import Project, Role, User, UserSession


class AppRole(str, Enum):
    """Role names the dashboards distinguish; everything else is a member."""

    SUPER_ADMIN = "superadmin"
    ADMIN = "admin"
    MEMBER = "member"


def normalize_role(role_name: str | None) -> AppRole:
    normalized = (role_name or "").strip().lower()
    if normalized == AppRole.SUPER_ADMIN.value:
        return AppRole.SUPER_ADMIN
    if normalized == AppRole.ADMIN.value:
        return AppRole.ADMIN
    return AppRole.MEMBER


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from the session token."""

    user_id: int
    role_name: str
    user_name: str
    host_name: str
    ip_address: str
    session_id: str

    @property
    def role(self) -> AppRole:
        return normalize_role(self.role_name)

    @property
    def is_super_admin(self) -> bool:
        return self.role is AppRole.SUPER_ADMIN

    @property
    def scope(self) -> ProjectScope:
        """Project visibility derived once from the role."""

        if self.is_super_admin:
            return AllProjects()
        if self.role is AppRole.ADMIN:
            return ByClientOwner(self.user_id)
        return ByMembership(self.user_id)


def _session_token(authorization: str | None) -> str:
    token = (authorization or "").strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing session token in Authorization header.",
        )
    return token


def resolve_session(db: Session, token: str, *, now: datetime | None = None) -> RequestUserContext:
    """Load the live session for ``token`` or raise 401."""

    current = now or datetime.utcnow()
    row = db.execute(
        select(UserSession, User, Role)
        .join(User, User.id == UserSession.user_id)
        .join(Role, Role.role_id == User.role_id)
        .where(and_(UserSession.session_id == token, UserSession.expires_at > current))
    ).first()
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session.",
        )

    session_row, user, role = row
    return RequestUserContext(
        user_id=user.id,
        role_name=role.role_name,
        user_name=user.full_name,
        host_name=session_row.host_name,
        ip_address=session_row.ip_address,
        session_id=session_row.session_id,
    )


def get_current_user_context(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve the request actor from ``Authorization: <session_token>``.

    Host and IP recorded at login are kept; the client address of the
    current request is used when the session row has none.
    """

    context = resolve_session(db, _session_token(authorization))
    if not context.ip_address and request.client is not None:
        context = RequestUserContext(
            user_id=context.user_id,
            role_name=context.role_name,
            user_name=context.user_name,
            host_name=context.host_name,
            ip_address=request.client.host,
            session_id=context.session_id,
        )
    return context


def can_view_project(db: Session, context: RequestUserContext, project_id: int) -> bool:
    visible = db.scalar(
        select(Project.project_id).where(
            and_(
                Project.project_id == project_id,
                context.scope.clause(include_suspended=context.is_super_admin),
            )
        )
    )
    return visible is not None


def ensure_project_access(db: Session, context: RequestUserContext, project_id: int) -> Project:
    """Resolve the project or raise 404, then raise 403 when suspended or out of scope.

    Only superadmins may read suspended projects.
    """

    project = db.scalar(select(Project).where(Project.project_id == project_id))
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.")
    if project.suspend and not context.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Project is suspended.")
    if not can_view_project(db, context, project_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this project.",
        )
    return project
