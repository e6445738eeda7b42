"""dashboard schema

Revision ID: 20250101_0001
Revises:
Create Date: 2025-01-01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20250101_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "roles",
        sa.Column("role_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("role_name", sa.String(length=64), nullable=False, unique=True),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.role_id"), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_role_id", "users", ["role_id"])

    op.create_table(
        "client",
        sa.Column("client_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("organization", sa.String(length=255), nullable=False, server_default=""),
    )

    op.create_table(
        "end_client",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("client.client_id"), nullable=False),
        sa.Column("contact_person", sa.String(length=255), nullable=False, server_default=""),
    )

    op.create_table(
        "project",
        sa.Column("project_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("end_client.id"), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("suspend", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("priority", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("project_status", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("description", sa.String(length=2000), nullable=False, server_default=""),
        sa.Column("budget", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_project_client_id", "project", ["client_id"])

    op.create_table(
        "session",
        sa.Column("session_id", sa.String(length=255), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("host_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("ip_address", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_session_user_id", "session", ["user_id"])

    op.create_table(
        "project_members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.role_id"), nullable=False),
    )
    op.create_unique_constraint("uq_project_members_project_user", "project_members", ["project_id", "user_id"])
    op.create_index("ix_project_members_user_id", "project_members", ["user_id"])

    op.create_table(
        "precast",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=False, server_default=""),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("precast.id"), nullable=True),
        sa.Column("prefix", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("naming_convention", sa.String(length=255), nullable=False, server_default=""),
    )
    op.create_index("ix_precast_project_parent", "precast", ["project_id", "parent_id"])

    op.create_table(
        "element_type",
        sa.Column("element_type_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column("element_type", sa.String(length=64), nullable=False),
        sa.Column("element_type_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("thickness", sa.Float(), nullable=True),
        sa.Column("length", sa.Float(), nullable=True),
        sa.Column("height", sa.Float(), nullable=True),
    )
    op.create_index("ix_element_type_project_id", "element_type", ["project_id"])

    op.create_table(
        "element",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("element_id", sa.String(length=128), nullable=False, server_default=""),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column(
            "element_type_id",
            sa.Integer(),
            sa.ForeignKey("element_type.element_type_id"),
            nullable=False,
        ),
        sa.Column("target_location", sa.Integer(), sa.ForeignKey("precast.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_element_project_location", "element", ["project_id", "target_location"])
    op.create_index("ix_element_type_id", "element", ["element_type_id"])

    op.create_table(
        "stages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
    )

    op.create_table(
        "project_stages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_project_stages_project_id", "project_stages", ["project_id"])

    op.create_table(
        "activity",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("element_id", sa.Integer(), sa.ForeignKey("element.id"), nullable=False),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column("stage_id", sa.Integer(), sa.ForeignKey("project_stages.id"), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("qc_status", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("mesh_mold_status", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("reinforcement_status", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("meshmold_qc_status", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("reinforcement_qc_status", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_activity_project_start", "activity", ["project_id", "start_date"])
    op.create_index("ix_activity_element_id", "activity", ["element_id"])

    op.create_table(
        "stockyards",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("yard_name", sa.String(length=255), nullable=False),
    )

    op.create_table(
        "project_stockyard",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column("stockyard_id", sa.Integer(), sa.ForeignKey("stockyards.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
    )
    op.create_index("ix_project_stockyard_project_user", "project_stockyard", ["project_id", "user_id"])

    op.create_table(
        "precast_stock",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("element_id", sa.Integer(), sa.ForeignKey("element.id"), nullable=False),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column("stockyard_id", sa.Integer(), sa.ForeignKey("stockyards.id"), nullable=True),
        sa.Column("production_date", sa.DateTime(), nullable=True),
        sa.Column("stockyard", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("dispatch_status", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("dispatch_start", sa.DateTime(), nullable=True),
        sa.Column("dispatch_end", sa.DateTime(), nullable=True),
        sa.Column("erected", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order_by_erection", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_unique_constraint("uq_precast_stock_element_id", "precast_stock", ["element_id"])
    op.create_index("ix_precast_stock_project_production", "precast_stock", ["project_id", "production_date"])

    op.create_table(
        "complete_production",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.project_id"), nullable=False),
        sa.Column("element_id", sa.Integer(), sa.ForeignKey("element.id"), nullable=True),
        sa.Column("stage_id", sa.Integer(), sa.ForeignKey("project_stages.id"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_complete_production_project_updated",
        "complete_production",
        ["project_id", "updated_at"],
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("user_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("host_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("event_context", sa.String(length=64), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("description", sa.String(length=2000), nullable=False, server_default=""),
        sa.Column("event_name", sa.String(length=64), nullable=False),
        sa.Column("affected_user_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("affected_user_email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("project_id", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_created_at", table_name="activity_logs")
    op.drop_table("activity_logs")

    op.drop_index("ix_complete_production_project_updated", table_name="complete_production")
    op.drop_table("complete_production")

    op.drop_index("ix_precast_stock_project_production", table_name="precast_stock")
    op.drop_constraint("uq_precast_stock_element_id", "precast_stock", type_="unique")
    op.drop_table("precast_stock")

    op.drop_index("ix_project_stockyard_project_user", table_name="project_stockyard")
    op.drop_table("project_stockyard")
    op.drop_table("stockyards")

    op.drop_index("ix_activity_element_id", table_name="activity")
    op.drop_index("ix_activity_project_start", table_name="activity")
    op.drop_table("activity")

    op.drop_index("ix_project_stages_project_id", table_name="project_stages")
    op.drop_table("project_stages")
    op.drop_table("stages")

    op.drop_index("ix_element_type_id", table_name="element")
    op.drop_index("ix_element_project_location", table_name="element")
    op.drop_table("element")

    op.drop_index("ix_element_type_project_id", table_name="element_type")
    op.drop_table("element_type")

    op.drop_index("ix_precast_project_parent", table_name="precast")
    op.drop_table("precast")

    op.drop_index("ix_project_members_user_id", table_name="project_members")
    op.drop_constraint("uq_project_members_project_user", "project_members", type_="unique")
    op.drop_table("project_members")

    op.drop_index("ix_session_user_id", table_name="session")
    op.drop_table("session")

    op.drop_index("ix_project_client_id", table_name="project")
    op.drop_table("project")

    op.drop_table("end_client")
    op.drop_table("client")

    op.drop_index("ix_users_role_id", table_name="users")
    op.drop_table("users")
    op.drop_table("roles")
