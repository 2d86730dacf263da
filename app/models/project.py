"""Project model — owned jointly by a tenant and its manager."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, UtcDateTime, new_uuid


class ProjectStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class Project(TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    manager_id: uuid.UUID = Field(nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    description: str = Field(default="", max_length=2000)
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE)
    start_date: datetime | None = Field(default=None)
    due_date: datetime | None = Field(default=None)


class ProjectTeam(SQLModel, table=True):
    """``project.teamIds`` — teams attached to a project."""

    __tablename__ = "project_teams"

    project_id: uuid.UUID = Field(primary_key=True)
    team_id: uuid.UUID = Field(primary_key=True, index=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class ProjectCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=2000)
    start_date: UtcDateTime | None = None
    due_date: UtcDateTime | None = None


class ProjectUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: ProjectStatus | None = None
    start_date: UtcDateTime | None = None
    due_date: UtcDateTime | None = None


class ProjectRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    manager_id: uuid.UUID
    name: str
    description: str
    status: ProjectStatus
    team_ids: list[uuid.UUID] = []
    start_date: datetime | None
    due_date: datetime | None
    created_at: datetime


class ProjectSummary(SQLModel):
    id: uuid.UUID
    name: str
    status: ProjectStatus
    due_date: datetime | None
    created_at: datetime
