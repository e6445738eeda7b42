"""ORM entities for the precast dashboard schema."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Role(Base):
    __tablename__ = "roles"

    role_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("ix_users_role_id", "role_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.role_id"), nullable=False)
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Client(Base):
    __tablename__ = "client"

    client_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    organization: Mapped[str] = mapped_column(String(255), nullable=False, default="")


class EndClient(Base):
    __tablename__ = "end_client"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("client.client_id"), nullable=False)
    contact_person: Mapped[str] = mapped_column(String(255), nullable=False, default="")


class Project(Base):
    __tablename__ = "project"
    __table_args__ = (Index("ix_project_client_id", "client_id"),)

    project_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[int | None] = mapped_column(ForeignKey("end_client.id"), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    suspend: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    project_status: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    budget: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class UserSession(Base):
    __tablename__ = "session"
    __table_args__ = (Index("ix_session_user_id", "user_id"),)

    session_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    host_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class ProjectMember(Base):
    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
        Index("ix_project_members_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.role_id"), nullable=False)


class Precast(Base):
    """Hierarchy node: a tower when ``parent_id`` is NULL, a floor otherwise."""

    __tablename__ = "precast"
    __table_args__ = (Index("ix_precast_project_parent", "project_id", "parent_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("precast.id"), nullable=True)
    prefix: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    naming_convention: Mapped[str] = mapped_column(String(255), nullable=False, default="")


class ElementType(Base):
    __tablename__ = "element_type"
    __table_args__ = (Index("ix_element_type_project_id", "project_id"),)

    element_type_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    element_type: Mapped[str] = mapped_column(String(64), nullable=False)
    element_type_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # Dimensions in millimetres.
    thickness: Mapped[float | None] = mapped_column(Float, nullable=True)
    length: Mapped[float | None] = mapped_column(Float, nullable=True)
    height: Mapped[float | None] = mapped_column(Float, nullable=True)


class Element(Base):
    __tablename__ = "element"
    __table_args__ = (
        Index("ix_element_project_location", "project_id", "target_location"),
        Index("ix_element_type_id", "element_type_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    element_id: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    element_type_id: Mapped[int] = mapped_column(ForeignKey("element_type.element_type_id"), nullable=False)
    target_location: Mapped[int | None] = mapped_column(ForeignKey("precast.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class Stage(Base):
    __tablename__ = "stages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class ProjectStage(Base):
    __tablename__ = "project_stages"
    __table_args__ = (Index("ix_project_stages_project_id", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)


class Activity(Base):
    """In-progress production cycle of one element."""

    __tablename__ = "activity"
    __table_args__ = (
        Index("ix_activity_project_start", "project_id", "start_date"),
        Index("ix_activity_element_id", "element_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    element_id: Mapped[int] = mapped_column(ForeignKey("element.id"), nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    stage_id: Mapped[int | None] = mapped_column(ForeignKey("project_stages.id"), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    qc_status: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    mesh_mold_status: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    reinforcement_status: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    meshmold_qc_status: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    reinforcement_qc_status: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Stockyard(Base):
    __tablename__ = "stockyards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    yard_name: Mapped[str] = mapped_column(String(255), nullable=False)


class ProjectStockyard(Base):
    """Stockyard assigned to a project, managed by ``user_id``."""

    __tablename__ = "project_stockyard"
    __table_args__ = (Index("ix_project_stockyard_project_user", "project_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    stockyard_id: Mapped[int] = mapped_column(ForeignKey("stockyards.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)


class PrecastStock(Base):
    """Lifecycle record created at casting, updated on dispatch and erection."""

    __tablename__ = "precast_stock"
    __table_args__ = (
        UniqueConstraint("element_id", name="uq_precast_stock_element_id"),
        Index("ix_precast_stock_project_production", "project_id", "production_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    element_id: Mapped[int] = mapped_column(ForeignKey("element.id"), nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    stockyard_id: Mapped[int | None] = mapped_column(ForeignKey("stockyards.id"), nullable=True)
    production_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    stockyard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    dispatch_status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dispatch_start: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    dispatch_end: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    erected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_by_erection: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class CompleteProduction(Base):
    """Stage sign-off recorded by a project member."""

    __tablename__ = "complete_production"
    __table_args__ = (Index("ix_complete_production_project_updated", "project_id", "updated_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("project.project_id"), nullable=False)
    element_id: Mapped[int | None] = mapped_column(ForeignKey("element.id"), nullable=True)
    stage_id: Mapped[int | None] = mapped_column(ForeignKey("project_stages.id"), nullable=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    __table_args__ = (Index("ix_activity_logs_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    host_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    event_context: Mapped[str] = mapped_column(String(64), nullable=False)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    event_name: Mapped[str] = mapped_column(String(64), nullable=False)
    affected_user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    affected_user_email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    project_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
