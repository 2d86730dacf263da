"""Shared test fixtures — async SQLite in-memory DB, test client, company builder."""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# Import all models so metadata is populated
import app.models  # noqa: F401
from app.api.deps import get_blob_store, get_notifier
from app.core.database import get_session
from app.main import app
from app.services.notifier import NotificationEvent, Notifier
from app.services.storage import BlobStore

PASSWORD = "secret123"


class RecordingNotifier(Notifier):
    """Notifier that keeps events in memory instead of queueing them."""

    def __init__(self) -> None:
        super().__init__(None)
        self.sent: list[tuple[NotificationEvent, dict]] = []

    async def notify(self, event, payload) -> None:
        self.sent.append((event, dict(payload)))

    def token_for(self, email: str, event=NotificationEvent.ACCOUNT_VERIFY) -> str:
        for sent_event, payload in reversed(self.sent):
            if sent_event == event and payload["to"] == email:
                return payload["token"]
        raise AssertionError(f"no {event} notification for {email}")


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def blob_store(tmp_path) -> BlobStore:
    return BlobStore(tmp_path / "uploads", "http://test/uploads", max_size=1024 * 1024)


@pytest.fixture
async def client(test_session_factory, notifier, blob_store) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client; one fresh DB session per request."""

    async def _override_session():
        async with test_session_factory() as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Company builder ──────────────────────────────────────────


@dataclass
class Company:
    """A bootstrapped tenant: owner, one manager, two members."""

    slug: str
    tenant_id: str
    owner: dict
    manager: dict
    members: list[dict] = field(default_factory=list)
    owner_id: str = ""
    manager_id: str = ""


class Builder:
    def __init__(self, client: AsyncClient, notifier: RecordingNotifier) -> None:
        self.client = client
        self.notifier = notifier

    async def verify(self, email: str) -> None:
        token = self.notifier.token_for(email)
        resp = await self.client.get(f"/v1/auth/verify/{token}")
        assert resp.status_code == 200, resp.text

    async def login(self, email: str, password: str = PASSWORD) -> dict:
        resp = await self.client.post("/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    async def owner(self, slug: str) -> tuple[dict, str]:
        email = f"owner@{slug}.com"
        resp = await self.client.post("/v1/auth/signup", json={
            "name": f"{slug} owner",
            "email": email,
            "password": PASSWORD,
        })
        assert resp.status_code == 201, resp.text
        await self.verify(email)
        headers = await self.login(email)
        resp = await self.client.get("/v1/auth/me", headers=headers)
        return headers, resp.json()["account"]["id"]

    async def invite(self, owner: dict, slug: str, name: str, role: str) -> tuple[dict, str]:
        email = f"{name}@{slug}.com"
        resp = await self.client.post("/v1/companies/users", json={
            "name": name,
            "email": email,
            "password": PASSWORD,
            "role": role,
        }, headers=owner)
        assert resp.status_code == 201, resp.text
        await self.verify(email)
        return await self.login(email), resp.json()["id"]

    async def company(self, slug: str) -> Company:
        owner, owner_id = await self.owner(slug)
        resp = await self.client.post(
            "/v1/companies", json={"name": f"{slug} Co"}, headers=owner
        )
        assert resp.status_code == 201, resp.text
        tenant_id = resp.json()["id"]

        manager, manager_id = await self.invite(owner, slug, "manager", "manager")
        members = []
        for name in ("alice", "bob"):
            headers, account_id = await self.invite(owner, slug, name, "member")
            members.append({"headers": headers, "id": account_id})
        return Company(
            slug=slug,
            tenant_id=tenant_id,
            owner=owner,
            manager=manager,
            members=members,
            owner_id=owner_id,
            manager_id=manager_id,
        )

    async def project(self, co: Company, name: str = "Apollo", **fields) -> dict:
        resp = await self.client.post(
            "/v1/projects", json={"name": name, **fields}, headers=co.manager
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def team(self, co: Company, project_id: str, name: str = "Core", member_ids=None) -> dict:
        if member_ids is None:
            member_ids = [m["id"] for m in co.members]
        resp = await self.client.post("/v1/teams", json={
            "name": name,
            "project_id": project_id,
            "member_ids": member_ids,
        }, headers=co.manager)
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def task(self, co: Company, team_id: str, assignee_id: str, title: str = "Work", **fields) -> dict:
        resp = await self.client.post("/v1/tasks", json={
            "title": title,
            "team_id": team_id,
            "assignee_id": assignee_id,
            **fields,
        }, headers=co.manager)
        assert resp.status_code == 201, resp.text
        return resp.json()


@pytest.fixture
def builder(client, notifier) -> Builder:
    return Builder(client, notifier)
