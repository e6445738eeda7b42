"""Row factories shared by the API and service tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.entities import (
    Activity,
    Client,
    CompleteProduction,
    Element,
    ElementType,
    EndClient,
    Precast,
    PrecastStock,
    Project,
    ProjectMember,
    ProjectStage,
    ProjectStockyard,
    Role,
    Stage,
    Stockyard,
    User,
    UserSession,
)


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": token}


def _save(db: Session, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def create_role(db: Session, role_name: str) -> Role:
    existing = db.scalar(select(Role).where(Role.role_name == role_name))
    if existing is not None:
        return existing
    return _save(db, Role(role_name=role_name))


def create_user(
    db: Session,
    *,
    role_name: str,
    email: str,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    role = create_role(db, role_name)
    return _save(
        db,
        User(first_name=first_name, last_name=last_name, email=email, role_id=role.role_id),
    )


def create_session(
    db: Session,
    user: User,
    *,
    token: str,
    expires_at: datetime | None = None,
    host_name: str = "yard-office",
    ip_address: str = "10.0.0.5",
) -> str:
    _save(
        db,
        UserSession(
            session_id=token,
            user_id=user.id,
            host_name=host_name,
            ip_address=ip_address,
            expires_at=expires_at or datetime.utcnow() + timedelta(hours=8),
        ),
    )
    return token


def login(db: Session, *, role_name: str, email: str, token: str) -> tuple[User, dict[str, str]]:
    user = create_user(db, role_name=role_name, email=email)
    create_session(db, user, token=token)
    return user, auth_headers(token)


def create_end_client(db: Session, owner: User) -> EndClient:
    client = _save(db, Client(user_id=owner.id, organization="Owner Org"))
    return _save(db, EndClient(client_id=client.client_id, contact_person="Site Lead"))


def create_project(
    db: Session,
    *,
    name: str,
    client_id: int | None = None,
    start_date: date = date(2024, 1, 1),
    end_date: date = date(2099, 12, 31),
    suspend: bool = False,
) -> Project:
    return _save(
        db,
        Project(
            name=name,
            client_id=client_id,
            start_date=start_date,
            end_date=end_date,
            suspend=suspend,
            priority="high",
            project_status="active",
        ),
    )


def add_member(db: Session, project: Project, user: User, *, role_name: str = "Member") -> ProjectMember:
    role = create_role(db, role_name)
    return _save(db, ProjectMember(project_id=project.project_id, user_id=user.id, role_id=role.role_id))


def create_node(db: Session, project: Project, name: str, parent: Precast | None = None) -> Precast:
    return _save(
        db,
        Precast(project_id=project.project_id, name=name, parent_id=parent.id if parent is not None else None),
    )


def create_element_type(
    db: Session,
    project: Project,
    code: str,
    *,
    thickness: float | None = 200,
    length: float | None = 5000,
    height: float | None = 3000,
) -> ElementType:
    """Defaults give a 3.00 m3 element."""

    return _save(
        db,
        ElementType(
            project_id=project.project_id,
            element_type=code,
            element_type_name=f"{code} panel",
            thickness=thickness,
            length=length,
            height=height,
        ),
    )


def create_element(db: Session, project: Project, element_type: ElementType, node: Precast | None) -> Element:
    return _save(
        db,
        Element(
            element_id=f"{element_type.element_type}-{node.id if node is not None else 0}",
            project_id=project.project_id,
            element_type_id=element_type.element_type_id,
            target_location=node.id if node is not None else None,
        ),
    )


def create_stock(
    db: Session,
    element: Element,
    *,
    production_date: datetime | None = None,
    dispatch_status: bool = False,
    dispatch_start: datetime | None = None,
    erected: bool = False,
    updated_at: datetime | None = None,
    stockyard: bool = True,
    created_at: datetime | None = None,
    stockyard_id: int | None = None,
) -> PrecastStock:
    stamp = production_date or datetime(2025, 1, 1)
    return _save(
        db,
        PrecastStock(
            element_id=element.id,
            project_id=element.project_id,
            production_date=production_date,
            stockyard_id=stockyard_id,
            stockyard=stockyard,
            dispatch_status=dispatch_status,
            dispatch_start=dispatch_start,
            erected=erected,
            created_at=created_at or stamp,
            updated_at=updated_at or stamp,
        ),
    )


def create_stockyard(db: Session, project: Project, manager: User, *, yard_name: str = "Yard A") -> Stockyard:
    yard = _save(db, Stockyard(yard_name=yard_name))
    _save(db, ProjectStockyard(project_id=project.project_id, stockyard_id=yard.id, user_id=manager.id))
    return yard


def create_project_stage(db: Session, project: Project, name: str, *, order: int) -> ProjectStage:
    if db.scalar(select(Stage).where(Stage.name == name)) is None:
        _save(db, Stage(name=name))
    return _save(db, ProjectStage(project_id=project.project_id, name=name, order=order))


def create_activity(
    db: Session,
    element: Element,
    *,
    start_date: datetime | None = None,
    stage: ProjectStage | None = None,
    status: str = "",
    qc_status: str = "",
    completed: bool = False,
) -> Activity:
    return _save(
        db,
        Activity(
            element_id=element.id,
            project_id=element.project_id,
            stage_id=stage.id if stage is not None else None,
            start_date=start_date,
            status=status,
            qc_status=qc_status,
            completed=completed,
        ),
    )


def create_completion(
    db: Session,
    project: Project,
    user: User,
    *,
    status: str,
    updated_at: datetime,
    stage: ProjectStage | None = None,
) -> CompleteProduction:
    return _save(
        db,
        CompleteProduction(
            project_id=project.project_id,
            user_id=user.id,
            stage_id=stage.id if stage is not None else None,
            status=status,
            started_at=updated_at,
            updated_at=updated_at,
        ),
    )
