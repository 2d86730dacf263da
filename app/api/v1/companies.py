"""Company administration — tenant creation, account management, owner dashboard."""

import uuid
from datetime import timedelta

from fastapi import APIRouter, Query, status
from sqlmodel import select

from app.api.deps import Auth, NotifierDep, OwnerAuth, Session, StaffAuth
from app.core.config import get_settings
from app.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from app.core.security import generate_email_token, hash_password
from app.models.account import Account, AccountInvite, AccountRead, AccountRole, AccountRoleUpdate
from app.models.base import utcnow
from app.models.tenant import Tenant, TenantCreate, TenantRead
from app.services import lifecycle
from app.services.dashboards import OwnerDashboard, owner_dashboard
from app.services.lifecycle import AccountDeletion, ProjectDeletion
from app.services.notifier import NotificationEvent

router = APIRouter(prefix="/companies", tags=["companies"])

settings = get_settings()

_INVITABLE = (AccountRole.MANAGER, AccountRole.MEMBER)


@router.post(
    "",
    response_model=TenantRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create the caller's company",
)
async def create_company(body: TenantCreate, auth: OwnerAuth, session: Session) -> TenantRead:
    """Create the tenant owned by the caller. Each owner gets exactly one."""
    if auth.tenant_id is not None:
        raise Conflict("You already own a company")

    tenant = Tenant(name=body.name, description=body.description, owner_id=auth.account_id)
    session.add(tenant)
    await session.flush()  # populate tenant.id

    account = await session.get(Account, auth.account_id)
    account.tenant_id = tenant.id
    account.updated_at = utcnow()
    session.add(account)
    await session.commit()
    await session.refresh(tenant)
    return TenantRead.model_validate(tenant)


@router.get("/me", response_model=TenantRead)
async def get_company(auth: Auth, session: Session) -> TenantRead:
    if auth.tenant_id is None:
        raise NotFound("Company not found")
    tenant = await session.get(Tenant, auth.tenant_id)
    if tenant is None:
        raise NotFound("Company not found")
    return TenantRead.model_validate(tenant)


@router.post("/users", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
async def invite_account(
    body: AccountInvite,
    auth: OwnerAuth,
    session: Session,
    notifier: NotifierDep,
) -> AccountRead:
    """Create a manager or member account inside the caller's company."""
    scope = auth.scope(session)
    if body.role not in _INVITABLE:
        raise ValidationFailed("Invited accounts must be managers or members")

    email = body.email.lower()
    taken = await session.execute(select(Account.id).where(Account.email == email))
    if taken.scalar_one_or_none():
        raise Conflict("Email already registered")
    if await scope.exists(Account, Account.name == body.name):
        raise Conflict(f"Name '{body.name}' is already used in this company")

    token = generate_email_token()
    account = scope.add(
        Account(
            name=body.name,
            email=email,
            password_hash=hash_password(body.password),
            role=body.role,
            is_verified=False,
            email_token=token,
            email_token_expires=utcnow() + timedelta(minutes=settings.email_token_expire_minutes),
        )
    )
    await session.commit()
    await session.refresh(account)

    await notifier.notify(NotificationEvent.ACCOUNT_VERIFY, {"to": email, "token": token})
    return AccountRead.model_validate(account)


@router.get("/users", response_model=list[AccountRead])
async def list_accounts(
    auth: StaffAuth,
    session: Session,
    role: AccountRole | None = None,
) -> list[AccountRead]:
    scope = auth.scope(session)
    where = (Account.role == role,) if role else ()
    accounts = await scope.all(Account, *where, order_by=(Account.name.asc(),))
    return [AccountRead.model_validate(a) for a in accounts]


@router.put("/users/{account_id}/role", response_model=AccountRead)
async def change_role(
    account_id: uuid.UUID,
    body: AccountRoleUpdate,
    auth: OwnerAuth,
    session: Session,
) -> AccountRead:
    """Promote a member to manager, or demote a manager to member."""
    scope = auth.scope(session)
    if body.role not in _INVITABLE:
        raise ValidationFailed("Role must be manager or member")

    account = await scope.get(Account, account_id, detail="Account not found")
    if account.role == AccountRole.OWNER:
        raise Forbidden("The company owner's role cannot be changed")

    if (
        account.role == AccountRole.MANAGER
        and body.role == AccountRole.MEMBER
        and await lifecycle.has_live_projects(scope, account.id)
    ):
        raise Conflict("Manager still has projects that are not completed")

    account.role = body.role
    account.updated_at = utcnow()
    session.add(account)
    await session.commit()
    await session.refresh(account)
    return AccountRead.model_validate(account)


@router.delete("/users/{account_id}", response_model=AccountDeletion)
async def delete_account(account_id: uuid.UUID, auth: StaffAuth, session: Session) -> AccountDeletion:
    """Remove an account with its tasks, team memberships and project-team links.

    Owners may remove managers and members; managers may remove members.
    """
    return await lifecycle.delete_account(
        auth.scope(session), account_id, actor_id=auth.account_id, actor_role=auth.role
    )


@router.delete("/projects/{project_id}", response_model=ProjectDeletion)
async def delete_project(
    project_id: uuid.UUID,
    auth: OwnerAuth,
    session: Session,
    force: bool = Query(default=False, description="Delete even if the project is not closed"),
) -> ProjectDeletion:
    return await lifecycle.delete_project(auth.scope(session), project_id, force=force)


@router.get("/dashboard", response_model=OwnerDashboard)
async def get_dashboard(auth: OwnerAuth, session: Session) -> OwnerDashboard:
    return await owner_dashboard(auth.scope(session), utcnow())
