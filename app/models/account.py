"""Account model — owners, managers and members."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import EmailStr
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class AccountRole(StrEnum):
    OWNER = "owner"
    MANAGER = "manager"
    MEMBER = "member"


class Account(TimestampMixin, SQLModel, table=True):
    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_accounts_tenant_name"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)

    # Null only for an owner that has not created its company yet
    tenant_id: uuid.UUID | None = Field(default=None, foreign_key="tenants.id", index=True)

    name: str = Field(max_length=100, nullable=False)
    # Stored lower-cased; globally unique
    email: str = Field(max_length=320, nullable=False, unique=True, index=True)
    password_hash: str = Field(nullable=False)
    role: AccountRole = Field(default=AccountRole.MEMBER)
    photo_url: str | None = Field(default=None, max_length=2048)

    is_verified: bool = Field(default=False)
    email_token: str | None = Field(default=None, index=True)
    email_token_expires: datetime | None = Field(default=None)
    reset_token: str | None = Field(default=None, index=True)
    reset_token_expires: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class SignupRequest(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class AccountInvite(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: AccountRole = AccountRole.MEMBER


class AccountRoleUpdate(SQLModel):
    role: AccountRole


class AccountRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID | None
    name: str
    email: str
    role: AccountRole
    photo_url: str | None
    is_verified: bool
    created_at: datetime
