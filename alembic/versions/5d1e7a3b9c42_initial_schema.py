"""initial schema: tenants, accounts, projects, teams, tasks, reports

Revision ID: 5d1e7a3b9c42
Revises: 
Create Date: 2026-10-19 09:12:04.118302

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5d1e7a3b9c42'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Enum columns store member names, as SQLModel maps them
account_role = sa.Enum("OWNER", "MANAGER", "MEMBER", name="accountrole")
project_status = sa.Enum("ACTIVE", "COMPLETED", "ON_HOLD", name="projectstatus")
task_status = sa.Enum("PENDING", "IN_PROGRESS", "COMPLETED", "BLOCKED", name="taskstatus")
task_priority = sa.Enum("LOW", "MEDIUM", "HIGH", name="taskpriority")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _tenant_fk() -> sa.Column:
    return sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tenants_owner_id", "tenants", ["owner_id"], unique=True)

    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", account_role, nullable=False),
        sa.Column("photo_url", sa.String(2048), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("email_token", sa.String(), nullable=True),
        sa.Column("email_token_expires", sa.DateTime(), nullable=True),
        sa.Column("reset_token", sa.String(), nullable=True),
        sa.Column("reset_token_expires", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "name", name="uq_accounts_tenant_name"),
    )
    op.create_index("ix_accounts_tenant_id", "accounts", ["tenant_id"])
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)
    op.create_index("ix_accounts_email_token", "accounts", ["email_token"])
    op.create_index("ix_accounts_reset_token", "accounts", ["reset_token"])

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("manager_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=False),
        sa.Column("status", project_status, nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_projects_tenant_id", "projects", ["tenant_id"])
    op.create_index("ix_projects_manager_id", "projects", ["manager_id"])

    op.create_table(
        "teams",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("manager_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "name", name="uq_teams_tenant_name"),
    )
    op.create_index("ix_teams_tenant_id", "teams", ["tenant_id"])
    op.create_index("ix_teams_project_id", "teams", ["project_id"])
    op.create_index("ix_teams_manager_id", "teams", ["manager_id"])

    op.create_table(
        "project_teams",
        sa.Column("project_id", sa.Uuid(), primary_key=True),
        sa.Column("team_id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
    )
    op.create_index("ix_project_teams_team_id", "project_teams", ["team_id"])
    op.create_index("ix_project_teams_tenant_id", "project_teams", ["tenant_id"])

    op.create_table(
        "team_members",
        sa.Column("team_id", sa.Uuid(), primary_key=True),
        sa.Column("account_id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
    )
    op.create_index("ix_team_members_account_id", "team_members", ["account_id"])
    op.create_index("ix_team_members_tenant_id", "team_members", ["tenant_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.Uuid(), nullable=False),
        sa.Column("assignee_id", sa.Uuid(), nullable=False),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(5000), nullable=False),
        sa.Column("status", task_status, nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False),
        sa.Column("estimated_hours", sa.Float(), nullable=False),
        sa.Column("priority", task_priority, nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    for column in ("tenant_id", "project_id", "team_id", "assignee_id", "status", "due_date"):
        op.create_index(f"ix_tasks_{column}", "tasks", [column])

    op.create_table(
        "reports",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _tenant_fk(),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.Uuid(), nullable=False),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(5000), nullable=False),
        sa.Column("file_url", sa.String(2048), nullable=True),
        sa.Column("file_type", sa.String(255), nullable=True),
        *_timestamps(),
    )
    for column in ("tenant_id", "project_id", "team_id", "creator_id"):
        op.create_index(f"ix_reports_{column}", "reports", [column])


def downgrade() -> None:
    for table in (
        "reports", "tasks", "team_members", "project_teams",
        "teams", "projects", "accounts", "tenants",
    ):
        op.drop_table(table)
    for enum in (task_priority, task_status, project_status, account_role):
        enum.drop(op.get_bind(), checkfirst=True)
