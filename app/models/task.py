"""Task model — the unit of tracked work."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, UtcDateTime, new_uuid


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    project_id: uuid.UUID = Field(nullable=False, index=True)
    team_id: uuid.UUID = Field(nullable=False, index=True)
    assignee_id: uuid.UUID = Field(nullable=False, index=True)
    creator_id: uuid.UUID = Field(nullable=False)

    title: str = Field(max_length=255, nullable=False)
    description: str = Field(default="", max_length=5000)
    status: TaskStatus = Field(default=TaskStatus.PENDING, index=True)
    progress: int = Field(default=0, ge=0, le=100)
    estimated_hours: float = Field(default=0.0, ge=0)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)

    start_date: datetime | None = Field(default=None)
    due_date: datetime | None = Field(default=None, index=True)
    completed_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class TaskCreate(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=5000)
    team_id: uuid.UUID
    assignee_id: uuid.UUID
    status: str = TaskStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    estimated_hours: float = Field(default=0.0, ge=0)
    priority: TaskPriority = TaskPriority.MEDIUM
    start_date: UtcDateTime | None = None
    due_date: UtcDateTime | None = None


class TaskUpdate(SQLModel):
    """Manager edit — every field optional."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    assignee_id: uuid.UUID | None = None
    status: str | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    estimated_hours: float | None = Field(default=None, ge=0)
    priority: TaskPriority | None = None
    start_date: UtcDateTime | None = None
    due_date: UtcDateTime | None = None


class TaskStatusUpdate(SQLModel):
    """Member status write — value checked by the state machine."""

    status: str


class TaskRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    project_id: uuid.UUID
    team_id: uuid.UUID
    assignee_id: uuid.UUID
    creator_id: uuid.UUID
    title: str
    description: str
    status: TaskStatus
    progress: int
    estimated_hours: float
    priority: TaskPriority
    start_date: datetime | None
    due_date: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class TaskSummary(SQLModel):
    id: uuid.UUID
    title: str
    status: TaskStatus
    progress: int
    priority: TaskPriority
    due_date: datetime | None
    project_id: uuid.UUID
    team_id: uuid.UUID
    assignee_id: uuid.UUID
