"""Report model — member-submitted write-ups with an optional attachment."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Report(TimestampMixin, SQLModel, table=True):
    __tablename__ = "reports"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    project_id: uuid.UUID = Field(nullable=False, index=True)
    team_id: uuid.UUID = Field(nullable=False, index=True)
    creator_id: uuid.UUID = Field(nullable=False, index=True)

    title: str = Field(max_length=255, nullable=False)
    description: str = Field(default="", max_length=5000)
    file_url: str | None = Field(default=None, max_length=2048)
    file_type: str | None = Field(default=None, max_length=255)


class ReportRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    project_id: uuid.UUID
    team_id: uuid.UUID
    creator_id: uuid.UUID
    title: str
    description: str
    file_url: str | None
    file_type: str | None
    created_at: datetime
