"""Profile endpoints for the authenticated account."""

from fastapi import APIRouter, Form, UploadFile
from pydantic import EmailStr
from sqlmodel import select

from app.api.deps import Auth, BlobStoreDep, Session
from app.core.errors import Conflict, NotFound
from app.models.account import Account, AccountRead
from app.models.base import utcnow
from app.services.storage import IMAGE_CONTENT_TYPES

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=AccountRead)
async def get_profile(auth: Auth, session: Session) -> AccountRead:
    account = await session.get(Account, auth.account_id)
    if account is None:
        raise NotFound("Account not found")
    return AccountRead.model_validate(account)


@router.patch("/me", response_model=AccountRead)
async def update_profile(
    auth: Auth,
    session: Session,
    blobs: BlobStoreDep,
    name: str | None = Form(None, min_length=1, max_length=100),
    email: EmailStr | None = Form(None),
    photo: UploadFile | None = None,
) -> AccountRead:
    """Change name, email or profile photo (PNG / JPEG)."""
    account = await session.get(Account, auth.account_id)
    if account is None:
        raise NotFound("Account not found")

    if email is not None and email.lower() != account.email:
        taken = await session.execute(select(Account.id).where(Account.email == email.lower()))
        if taken.scalar_one_or_none():
            raise Conflict("Email already registered")
        account.email = email.lower()

    if name is not None and name != account.name:
        if account.tenant_id is not None:
            clash = await session.execute(
                select(Account.id).where(
                    Account.tenant_id == account.tenant_id,
                    Account.name == name,
                    Account.id != account.id,
                )
            )
            if clash.scalar_one_or_none():
                raise Conflict(f"Name '{name}' is already used in this company")
        account.name = name

    old_photo = account.photo_url
    if photo is not None:
        blob = await blobs.store(
            await photo.read(), photo.content_type, photo.filename, IMAGE_CONTENT_TYPES
        )
        account.photo_url = blob.url

    account.updated_at = utcnow()
    session.add(account)
    await session.commit()
    await session.refresh(account)

    if photo is not None and old_photo:
        await blobs.discard(old_photo)
    return AccountRead.model_validate(account)
