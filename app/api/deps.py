"""FastAPI dependencies for authentication and tenant resolution."""

import logging
import uuid
from typing import Annotated, assert_never

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import get_session
from app.core.errors import Forbidden, Unauthenticated, Unverified
from app.core.security import decode_jwt
from app.models.account import Account, AccountRole
from app.models.tenant import Tenant
from app.services.notifier import Notifier
from app.services.storage import BlobStore
from app.services.tenancy import TenantScope

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Principal:
    """Resolved identity carried through a request."""

    __slots__ = ("account_id", "tenant_id", "role")

    def __init__(
        self,
        account_id: uuid.UUID,
        tenant_id: uuid.UUID | None,
        role: AccountRole,
    ) -> None:
        self.account_id = account_id
        self.tenant_id = tenant_id
        self.role = role

    def scope(self, session: AsyncSession) -> TenantScope:
        """Tenant-bound query helper; fails if the principal has no tenant yet."""
        return TenantScope(session, self.tenant_id)


async def _resolve_tenant(account: Account, session: AsyncSession) -> uuid.UUID | None:
    match account.role:
        case AccountRole.OWNER:
            result = await session.execute(
                select(Tenant.id).where(Tenant.owner_id == account.id)
            )
            return result.scalar_one_or_none()
        case AccountRole.MANAGER | AccountRole.MEMBER:
            return account.tenant_id
        case _:
            assert_never(account.role)


async def get_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> Principal:
    """Resolve a bearer JWT to a Principal.

    The account is re-read on every request so deletions, role changes and
    verification state take effect immediately.
    """
    if credentials is None:
        raise Unauthenticated("Not authenticated")

    try:
        payload = decode_jwt(credentials.credentials)
        account_id = uuid.UUID(payload["sub"])
    except (JWTError, KeyError, ValueError, TypeError) as exc:
        logger.warning("Rejected bearer token: %s", type(exc).__name__)
        raise Unauthenticated("Invalid or expired token") from exc

    account = await session.get(Account, account_id)
    if account is None:
        raise Unauthenticated("Account not found")
    if not account.is_verified:
        raise Unverified()

    tenant_id = await _resolve_tenant(account, session)
    return Principal(account_id=account.id, tenant_id=tenant_id, role=account.role)


def require_roles(*roles: AccountRole):
    """Dependency factory: admit only principals holding one of ``roles``."""

    async def _check(principal: Annotated[Principal, Depends(get_principal)]) -> Principal:
        if principal.role not in roles:
            raise Forbidden("Your role cannot perform this action")
        return principal

    return _check


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


# Typed shorthand for use in route signatures
Auth = Annotated[Principal, Depends(get_principal)]
OwnerAuth = Annotated[Principal, Depends(require_roles(AccountRole.OWNER))]
ManagerAuth = Annotated[Principal, Depends(require_roles(AccountRole.MANAGER))]
MemberAuth = Annotated[Principal, Depends(require_roles(AccountRole.MEMBER))]
StaffAuth = Annotated[Principal, Depends(require_roles(AccountRole.OWNER, AccountRole.MANAGER))]
Session = Annotated[AsyncSession, Depends(get_session)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]
