"""Team model — a manager's group of members working on one project."""

import uuid
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Team(TimestampMixin, SQLModel, table=True):
    __tablename__ = "teams"
    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_teams_tenant_name"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    project_id: uuid.UUID = Field(nullable=False, index=True)
    manager_id: uuid.UUID = Field(nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    description: str = Field(default="", max_length=2000)


class TeamMember(SQLModel, table=True):
    """``team.memberIds`` — one row per (team, account)."""

    __tablename__ = "team_members"

    team_id: uuid.UUID = Field(primary_key=True)
    account_id: uuid.UUID = Field(primary_key=True, index=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class TeamCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=2000)
    project_id: uuid.UUID
    member_ids: list[uuid.UUID] = Field(min_length=1)


class TeamUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    add_member_ids: list[uuid.UUID] = []
    remove_member_ids: list[uuid.UUID] = []


class TeamRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    project_id: uuid.UUID
    manager_id: uuid.UUID
    name: str
    description: str
    member_ids: list[uuid.UUID]
    created_at: datetime


class TeamSummary(SQLModel):
    id: uuid.UUID
    name: str
    project_id: uuid.UUID
    manager_id: uuid.UUID
