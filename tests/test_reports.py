"""Tests for report submission, listing and deletion."""

import pytest
from httpx import AsyncClient


async def _setup(builder, slug: str):
    co = await builder.company(slug)
    project = await builder.project(co)
    team = await builder.team(co, project["id"], member_ids=[co.members[0]["id"]])
    return co, project, team


@pytest.mark.asyncio
async def test_member_submits_report_with_pdf(client: AsyncClient, builder, blob_store):
    """A PDF report is stored, listed per role and deleted."""
    co, project, team = await _setup(builder, "reports")
    alice = co.members[0]["headers"]

    resp = await client.post(
        "/v1/reports",
        data={"title": "Weekly", "team_id": team["id"], "description": "All good"},
        files={"file": ("weekly.pdf", b"%PDF-1.4 test", "application/pdf")},
        headers=alice,
    )
    assert resp.status_code == 201, resp.text
    report = resp.json()
    assert report["project_id"] == project["id"]
    assert report["file_type"] == "application/pdf"
    assert report["file_url"].startswith("http://test/uploads/")
    stored = blob_store.root / report["file_url"].rsplit("/", 1)[-1]
    assert stored.read_bytes() == b"%PDF-1.4 test"

    resp = await client.get("/v1/reports/team", headers=alice)
    assert [r["id"] for r in resp.json()] == [report["id"]]
    resp = await client.get(f"/v1/reports/project/{project['id']}", headers=co.manager)
    assert [r["id"] for r in resp.json()] == [report["id"]]
    resp = await client.get("/v1/reports", headers=co.owner)
    assert [r["id"] for r in resp.json()] == [report["id"]]

    resp = await client.delete(f"/v1/reports/{report['id']}", headers=co.manager)
    assert resp.status_code == 204
    assert not stored.exists()
    resp = await client.get("/v1/reports", headers=co.owner)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_report_without_file(client: AsyncClient, builder):
    """Reports may be submitted without an attachment."""
    co, _, team = await _setup(builder, "nofile")
    resp = await client.post(
        "/v1/reports", data={"title": "Note", "team_id": team["id"]},
        headers=co.members[0]["headers"],
    )
    assert resp.status_code == 201
    assert resp.json()["file_url"] is None


@pytest.mark.asyncio
async def test_report_rejects_unsupported_type(client: AsyncClient, builder):
    """Only document types are accepted for reports."""
    co, _, team = await _setup(builder, "badfile")
    resp = await client.post(
        "/v1/reports",
        data={"title": "Pic", "team_id": team["id"]},
        files={"file": ("pic.png", b"\x89PNG", "image/png")},
        headers=co.members[0]["headers"],
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "unsupported_type"


@pytest.mark.asyncio
async def test_report_rejects_oversized_file(client: AsyncClient, builder, blob_store):
    """Attachments above the size cap are refused."""
    co, _, team = await _setup(builder, "bigfile")
    blob_store.max_size = 10
    resp = await client.post(
        "/v1/reports",
        data={"title": "Big", "team_id": team["id"]},
        files={"file": ("big.pdf", b"x" * 11, "application/pdf")},
        headers=co.members[0]["headers"],
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_report_requires_team_membership(client: AsyncClient, builder):
    """Only team members report on a team."""
    co, _, team = await _setup(builder, "outsider")
    resp = await client.post(
        "/v1/reports", data={"title": "Sneaky", "team_id": team["id"]},
        headers=co.members[1]["headers"],
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_members_cannot_delete_reports(client: AsyncClient, builder):
    """Members cannot delete reports."""
    co, _, team = await _setup(builder, "nodelete")
    alice = co.members[0]["headers"]
    resp = await client.post("/v1/reports", data={"title": "Mine", "team_id": team["id"]}, headers=alice)
    resp = await client.delete(f"/v1/reports/{resp.json()['id']}", headers=alice)
    assert resp.status_code == 403
