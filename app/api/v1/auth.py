"""Authentication endpoints — signup, email verification, login, password reset."""

from datetime import timedelta

from fastapi import APIRouter, status
from pydantic import BaseModel, EmailStr, Field
from sqlmodel import select

from app.api.deps import Auth, NotifierDep, Session
from app.core.config import get_settings
from app.core.errors import Conflict, NotFound, Unauthenticated, Unverified, ValidationFailed
from app.core.security import create_jwt, generate_email_token, hash_password, verify_password
from app.models.account import Account, AccountRead, AccountRole, SignupRequest
from app.models.base import utcnow
from app.models.tenant import Tenant, TenantRead
from app.services.notifier import NotificationEvent

router = APIRouter(prefix="/auth", tags=["auth"])

settings = get_settings()


# ── Schemas ──────────────────────────────────────────────────

class MessageResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account: AccountRead


class MeResponse(BaseModel):
    account: AccountRead
    tenant: TenantRead | None


class ResetRequest(BaseModel):
    email: EmailStr


class NewPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=6, max_length=128)


# ── Routes ───────────────────────────────────────────────────

@router.post("/signup", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, session: Session, notifier: NotifierDep) -> MessageResponse:
    """Register a company owner. The company itself is created after verification."""
    email = body.email.lower()
    existing = await session.execute(select(Account.id).where(Account.email == email))
    if existing.scalar_one_or_none():
        raise Conflict("Email already registered")

    token = generate_email_token()
    account = Account(
        name=body.name,
        email=email,
        password_hash=hash_password(body.password),
        role=AccountRole.OWNER,
        is_verified=False,
        email_token=token,
        email_token_expires=utcnow() + timedelta(minutes=settings.email_token_expire_minutes),
    )
    session.add(account)
    await session.commit()

    await notifier.notify(NotificationEvent.ACCOUNT_VERIFY, {"to": email, "token": token})
    return MessageResponse(message="Account created. Check your email to verify your account.")


@router.get("/verify/{token}", response_model=MessageResponse)
async def verify_email(token: str, session: Session) -> MessageResponse:
    result = await session.execute(
        select(Account).where(
            Account.email_token == token,
            Account.email_token_expires > utcnow(),
        )
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise ValidationFailed("Invalid or expired token")

    account.is_verified = True
    account.email_token = None
    account.email_token_expires = None
    account.updated_at = utcnow()
    session.add(account)
    await session.commit()
    return MessageResponse(message="Email verified successfully")


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, session: Session) -> LoginResponse:
    """Authenticate with email + password, receive a JWT."""
    result = await session.execute(select(Account).where(Account.email == body.email.lower()))
    account = result.scalar_one_or_none()

    if account is None or not verify_password(body.password, account.password_hash):
        raise Unauthenticated("Invalid email or password")

    if not account.is_verified:
        raise Unverified("Please verify your email before logging in")

    token = create_jwt(
        subject=str(account.id),
        role=account.role,
        tenant_id=str(account.tenant_id) if account.tenant_id else None,
    )
    return LoginResponse(access_token=token, account=AccountRead.model_validate(account))


@router.post("/reset", response_model=MessageResponse)
async def request_password_reset(
    body: ResetRequest, session: Session, notifier: NotifierDep
) -> MessageResponse:
    result = await session.execute(select(Account).where(Account.email == body.email.lower()))
    account = result.scalar_one_or_none()
    if account is None:
        raise NotFound("No account with that email found")

    token = generate_email_token()
    account.reset_token = token
    account.reset_token_expires = utcnow() + timedelta(minutes=settings.reset_token_expire_minutes)
    session.add(account)
    await session.commit()

    await notifier.notify(NotificationEvent.PASSWORD_RESET, {"to": account.email, "token": token})
    return MessageResponse(message="Password reset email sent")


@router.post("/new-password", response_model=MessageResponse)
async def set_new_password(body: NewPasswordRequest, session: Session) -> MessageResponse:
    result = await session.execute(
        select(Account).where(
            Account.reset_token == body.token,
            Account.reset_token_expires > utcnow(),
        )
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise ValidationFailed("Invalid or expired token")

    account.password_hash = hash_password(body.password)
    account.reset_token = None
    account.reset_token_expires = None
    account.updated_at = utcnow()
    session.add(account)
    await session.commit()
    return MessageResponse(message="Password has been reset successfully")


@router.get("/me", response_model=MeResponse)
async def get_me(auth: Auth, session: Session) -> MeResponse:
    """Return the current account and its company, if any."""
    account = await session.get(Account, auth.account_id)
    if account is None:
        raise NotFound("Account not found")

    tenant = await session.get(Tenant, auth.tenant_id) if auth.tenant_id else None
    return MeResponse(
        account=AccountRead.model_validate(account),
        tenant=TenantRead.model_validate(tenant) if tenant else None,
    )
