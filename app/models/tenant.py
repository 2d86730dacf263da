"""Tenant (company) model — top-level isolation boundary."""

import uuid

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    description: str = Field(default="", max_length=500)

    # One tenant per owner account
    owner_id: uuid.UUID = Field(nullable=False, unique=True, index=True)


# ── Pydantic schemas (read / create) ─────────────────────────

class TenantCreate(SQLModel):
    name: str = Field(min_length=3, max_length=255)
    description: str = Field(default="", max_length=500)


class TenantRead(SQLModel):
    id: uuid.UUID
    name: str
    description: str
    owner_id: uuid.UUID
