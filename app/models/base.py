"""Shared base fields for all models."""

import uuid
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Normalise client-supplied datetimes to the naive-UTC form stored in the DB."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


UtcDateTime = Annotated[datetime, AfterValidator(as_naive_utc)]


class TimestampMixin(SQLModel):
    """Created / updated timestamps injected into every table."""

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)
