"""ORM model package."""

from app.models.entities import (
    Activity,
    ActivityLog,
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

__all__ = [
    "Activity",
    "ActivityLog",
    "Client",
    "CompleteProduction",
    "Element",
    "ElementType",
    "EndClient",
    "Precast",
    "PrecastStock",
    "Project",
    "ProjectMember",
    "ProjectStage",
    "ProjectStockyard",
    "Role",
    "Stage",
    "Stockyard",
    "User",
    "UserSession",
]
