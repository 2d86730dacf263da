"""Cross-tenant isolation: nothing of company A is visible or writable from company B."""

import pytest
from httpx import AsyncClient


async def _two_companies(builder):
    a = await builder.company("alpha")
    b = await builder.company("beta")
    project = await builder.project(a, name="Secret")
    team = await builder.team(a, project["id"], name="Alpha Team")
    task = await builder.task(a, team["id"], a.members[0]["id"], title="Alpha work")
    return a, b, project, team, task


@pytest.mark.asyncio
async def test_foreign_entities_read_as_not_found(client: AsyncClient, builder):
    """Another tenant's rows read as not found."""
    a, b, project, team, task = await _two_companies(builder)

    resp = await client.get(f"/v1/projects/{project['id']}", headers=b.manager)
    assert resp.status_code == 404
    resp = await client.get(f"/v1/tracking/projects/{project['id']}", headers=b.owner)
    assert resp.status_code == 404
    resp = await client.get(f"/v1/reports/project/{project['id']}", headers=b.manager)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_foreign_entities_cannot_be_modified(client: AsyncClient, builder):
    """Another tenant's rows cannot be changed."""
    a, b, project, team, task = await _two_companies(builder)

    resp = await client.patch(f"/v1/projects/{project['id']}", json={"name": "Hijacked"}, headers=b.manager)
    assert resp.status_code == 404
    resp = await client.post(f"/v1/projects/{project['id']}/close", headers=b.manager)
    assert resp.status_code == 404
    resp = await client.patch(f"/v1/teams/{team['id']}", json={"name": "Hijacked"}, headers=b.manager)
    assert resp.status_code == 404
    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"progress": 99}, headers=b.manager)
    assert resp.status_code == 404
    resp = await client.put(
        f"/v1/member/tasks/{task['id']}/status", json={"status": "completed"},
        headers=b.members[0]["headers"],
    )
    assert resp.status_code == 404
    resp = await client.delete(f"/v1/companies/projects/{project['id']}?force=true", headers=b.owner)
    assert resp.status_code == 404
    resp = await client.delete(f"/v1/companies/users/{a.members[0]['id']}", headers=b.owner)
    assert resp.status_code == 404
    resp = await client.put(
        f"/v1/companies/users/{a.members[0]['id']}/role", json={"role": "manager"}, headers=b.owner
    )
    assert resp.status_code == 404

    # Company A is untouched
    resp = await client.get(f"/v1/projects/{project['id']}", headers=a.manager)
    assert resp.json()["name"] == "Secret"
    resp = await client.get("/v1/member/tasks", headers=a.members[0]["headers"])
    assert resp.json()[0]["status"] == "pending"


@pytest.mark.asyncio
async def test_foreign_accounts_cannot_join_teams_or_tasks(client: AsyncClient, builder):
    """Accounts from another tenant cannot be added or assigned."""
    a, b, project, team, task = await _two_companies(builder)
    b_project = await builder.project(b, name="Beta project")

    resp = await client.post("/v1/teams", json={
        "name": "Poacher", "project_id": b_project["id"], "member_ids": [a.members[0]["id"]],
    }, headers=b.manager)
    assert resp.status_code == 403

    b_team = await builder.team(b, b_project["id"], name="Beta Team")
    resp = await client.patch(
        f"/v1/teams/{b_team['id']}", json={"add_member_ids": [a.members[1]["id"]]}, headers=b.manager
    )
    assert resp.status_code == 403

    resp = await client.post("/v1/tasks", json={
        "title": "x", "team_id": b_team["id"], "assignee_id": a.members[0]["id"],
    }, headers=b.manager)
    assert resp.status_code == 403

    # A foreign team is not the caller's to add tasks to
    resp = await client.post("/v1/tasks", json={
        "title": "x", "team_id": team["id"], "assignee_id": b.members[0]["id"],
    }, headers=b.manager)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_lists_and_dashboards_stay_in_tenant(client: AsyncClient, builder):
    """Lists and dashboards never show another tenant's data."""
    a, b, project, team, task = await _two_companies(builder)

    resp = await client.get("/v1/tracking/projects", headers=b.owner)
    assert resp.json()["total_projects"] == 0
    resp = await client.get("/v1/companies/dashboard", headers=b.owner)
    summary = resp.json()["summary"]
    assert summary["total_projects"] == 0
    assert summary["total_tasks"] == 0
    assert summary["total_accounts"] == 4
    resp = await client.get("/v1/companies/users", headers=b.owner)
    assert {u["tenant_id"] for u in resp.json()} == {b.tenant_id}
    resp = await client.get("/v1/tasks", headers=b.manager)
    assert resp.json() == []
