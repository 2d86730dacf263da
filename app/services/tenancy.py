"""Tenant-scoped data access.

``TenantScope`` is the only way services and routers reach tenant-owned
tables: every statement it builds carries ``tenant_id == scope.tenant_id``,
so cross-tenant rows are never fetched in the first place. An entity that is
absent and one that belongs to another tenant both surface as ``NotFound``.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.core.errors import Conflict, Forbidden, NotFound
from app.models.project import Project, ProjectStatus

M = TypeVar("M", bound=SQLModel)


class TenantScope:
    """Query helpers bound to one session and one tenant."""

    __slots__ = ("session", "tenant_id")

    def __init__(self, session: AsyncSession, tenant_id: uuid.UUID | None) -> None:
        if tenant_id is None:
            raise Forbidden("Create your company first")
        self.session = session
        self.tenant_id = tenant_id

    def clause(self, model: type[SQLModel]) -> Any:
        return model.tenant_id == self.tenant_id  # type: ignore[attr-defined]

    def select(self, model: type[M], *where: Any):
        return select(model).where(self.clause(model), *where)

    async def all(
        self,
        model: type[M],
        *where: Any,
        order_by: Sequence[Any] = (),
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[M]:
        stmt = self.select(model, *where)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first(self, model: type[M], *where: Any) -> M | None:
        result = await self.session.execute(self.select(model, *where).limit(1))
        return result.scalars().first()

    async def get(self, model: type[M], entity_id: uuid.UUID, *where: Any, detail: str | None = None) -> M:
        entity = await self.first(model, model.id == entity_id, *where)  # type: ignore[attr-defined]
        if entity is None:
            raise NotFound(detail or f"{model.__name__} not found")
        return entity

    async def column(self, column: Any, *where: Any) -> list[Any]:
        """Distinct values of one column from tenant rows."""
        model = column.class_
        stmt = select(column).where(self.clause(model), *where).distinct()
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, model: type[SQLModel], *where: Any) -> int:
        stmt = select(func.count()).select_from(model).where(self.clause(model), *where)
        return (await self.session.execute(stmt)).scalar_one()

    async def exists(self, model: type[SQLModel], *where: Any) -> bool:
        return await self.count(model, *where) > 0

    async def update(self, model: type[SQLModel], values: dict[str, Any], *where: Any) -> int:
        stmt = update(model).where(self.clause(model), *where).values(**values)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete(self, model: type[SQLModel], *where: Any) -> int:
        stmt = delete(model).where(self.clause(model), *where)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    def add(self, entity: M) -> M:
        """Stamp the scope's tenant on a new entity and stage it."""
        entity.tenant_id = self.tenant_id  # type: ignore[attr-defined]
        self.session.add(entity)
        return entity


def assert_scope(
    entity: Any,
    tenant_id: uuid.UUID | None,
    predicate: Callable[[Any], bool] | None = None,
    detail: str = "Forbidden",
) -> None:
    """Fail with ``Forbidden`` unless the entity is in the tenant and the
    optional ownership predicate holds."""
    if entity is None or tenant_id is None or entity.tenant_id != tenant_id:
        raise Forbidden(detail)
    if predicate is not None and not predicate(entity):
        raise Forbidden(detail)


def assert_project_open(project: Project) -> None:
    if project.status == ProjectStatus.COMPLETED:
        raise Conflict("Cannot modify a closed project")
