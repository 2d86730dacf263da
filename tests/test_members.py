"""Tests for member endpoints and manager task edits."""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient


async def _setup(builder, slug: str):
    co = await builder.company(slug)
    project = await builder.project(co)
    team = await builder.team(co, project["id"])
    task = await builder.task(co, team["id"], co.members[0]["id"], estimated_hours=4)
    return co, project, team, task


@pytest.mark.asyncio
async def test_status_write_runs_state_machine(client: AsyncClient, builder):
    """Member status writes recompute progress and timestamps."""
    co, _, _, task = await _setup(builder, "status")
    alice = co.members[0]["headers"]

    resp = await client.put(f"/v1/member/tasks/{task['id']}/status", json={"status": "in_progress"}, headers=alice)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["progress"] == 1
    assert data["start_date"] is not None

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"progress": 40}, headers=co.manager)
    assert resp.json()["progress"] == 40

    resp = await client.put(f"/v1/member/tasks/{task['id']}/status", json={"status": "in_progress"}, headers=alice)
    assert resp.json()["progress"] == 40

    resp = await client.put(f"/v1/member/tasks/{task['id']}/status", json={"status": "completed"}, headers=alice)
    data = resp.json()
    assert data["progress"] == 100
    assert data["completed_at"] is not None
    completed_at = data["completed_at"]

    resp = await client.put(f"/v1/member/tasks/{task['id']}/status", json={"status": "completed"}, headers=alice)
    assert resp.json()["completed_at"] == completed_at


@pytest.mark.asyncio
async def test_reopen_completed_task(client: AsyncClient, builder):
    """A completed task can be moved back to pending."""
    co, _, _, task = await _setup(builder, "reopen")
    alice = co.members[0]["headers"]
    await client.put(f"/v1/member/tasks/{task['id']}/status", json={"status": "completed"}, headers=alice)

    resp = await client.put(f"/v1/member/tasks/{task['id']}/status", json={"status": "pending"}, headers=alice)
    assert resp.status_code == 200
    assert resp.json()["progress"] == 0
    assert resp.json()["completed_at"] is None


@pytest.mark.asyncio
async def test_invalid_status_rejected(client: AsyncClient, builder):
    """Unknown status values get invalid_status."""
    co, _, _, task = await _setup(builder, "badstatus")
    resp = await client.put(
        f"/v1/member/tasks/{task['id']}/status", json={"status": "finished"},
        headers=co.members[0]["headers"],
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_status"


@pytest.mark.asyncio
async def test_other_members_task_forbidden_same_shape_as_missing(client: AsyncClient, builder):
    """Someone else's task and a missing task give the same body."""
    co, _, _, task = await _setup(builder, "notmine")
    bob = co.members[1]["headers"]

    forbidden = await client.put(f"/v1/member/tasks/{task['id']}/status", json={"status": "completed"}, headers=bob)
    assert forbidden.status_code == 403
    missing = await client.put(
        "/v1/member/tasks/00000000-0000-0000-0000-000000000000/status",
        json={"status": "completed"},
        headers=bob,
    )
    assert missing.status_code == 404

    assert forbidden.json().keys() == missing.json().keys() == {"detail", "code"}
    assert forbidden.json()["detail"] == missing.json()["detail"]


@pytest.mark.asyncio
async def test_manager_task_edit_reapplies_status(client: AsyncClient, builder):
    """Explicit status edits recompute the derived task fields."""
    co, _, team, task = await _setup(builder, "mgredit")

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"status": "completed"}, headers=co.manager)
    assert resp.status_code == 200
    assert resp.json()["progress"] == 100
    assert resp.json()["completed_at"] is not None

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"status": "blocked"}, headers=co.manager)
    assert resp.json()["status"] == "blocked"
    assert resp.json()["completed_at"] is None

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"status": "nope"}, headers=co.manager)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_manager_progress_edit_moves_status(client: AsyncClient, builder):
    """A progress-only edit is kept and the status follows it."""
    co, _, _, task = await _setup(builder, "progedit")

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"progress": 50}, headers=co.manager)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["progress"] == 50
    assert data["status"] == "in_progress"
    assert data["start_date"] is not None

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"progress": 100}, headers=co.manager)
    assert resp.json()["status"] == "completed"
    assert resp.json()["completed_at"] is not None

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"progress": 60}, headers=co.manager)
    data = resp.json()
    assert data["status"] == "in_progress"
    assert data["progress"] == 60
    assert data["completed_at"] is None


@pytest.mark.asyncio
async def test_manager_edit_rejects_contradictory_progress(client: AsyncClient, builder):
    """Progress that the requested status would overwrite is refused."""
    co, _, _, task = await _setup(builder, "progclash")

    for body in (
        {"status": "completed", "progress": 10},
        {"status": "pending", "progress": 40},
        {"status": "in_progress", "progress": 0},
    ):
        resp = await client.patch(f"/v1/tasks/{task['id']}", json=body, headers=co.manager)
        assert resp.status_code == 422, body
        assert resp.json()["code"] == "validation_failed"

    resp = await client.get("/v1/tasks", headers=co.manager)
    stored = resp.json()[0]
    assert stored["status"] == "pending"
    assert stored["progress"] == 0


@pytest.mark.asyncio
async def test_manager_cannot_assign_outside_team(client: AsyncClient, builder):
    """Tasks can only be assigned to team members."""
    co = await builder.company("reassign")
    alice, bob = co.members
    project = await builder.project(co)
    team = await builder.team(co, project["id"], member_ids=[alice["id"]])
    task = await builder.task(co, team["id"], alice["id"])

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"assignee_id": bob["id"]}, headers=co.manager)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_other_manager_cannot_edit_task(client: AsyncClient, builder):
    """A manager cannot edit another manager's tasks."""
    co, _, _, task = await _setup(builder, "twomgr")
    other, _ = await builder.invite(co.owner, co.slug, "carol", "manager")

    resp = await client.patch(f"/v1/tasks/{task['id']}", json={"title": "mine now"}, headers=other)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_member_dashboard(client: AsyncClient, builder):
    """Member dashboard lists own tasks, teams and projects."""
    co, project, team, task = await _setup(builder, "memberdash")
    alice = co.members[0]["headers"]

    resp = await client.get("/v1/member/dashboard", headers=alice)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["due_soon_window_days"] == 3
    assert data["summary"]["my_total_tasks"] == 1
    assert data["summary"]["my_open_tasks"] == 1
    assert [t["id"] for t in data["teams"]] == [team["id"]]
    assert [t["id"] for t in data["my_next_tasks"]] == [task["id"]]

    resp = await client.get("/v1/member/teams", headers=alice)
    assert [t["name"] for t in resp.json()] == ["Core"]
    resp = await client.get("/v1/member/projects", headers=alice)
    assert [p["id"] for p in resp.json()] == [project["id"]]


@pytest.mark.asyncio
async def test_member_without_team_has_no_dashboard(client: AsyncClient, builder):
    """A member in no team has no dashboard."""
    co = await builder.company("loner")
    resp = await client.get("/v1/member/dashboard", headers=co.members[0]["headers"])
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_manager_dashboard(client: AsyncClient, builder):
    """Manager dashboard covers the manager's own projects."""
    co, project, _, _ = await _setup(builder, "mgrdash")

    resp = await client.get("/v1/projects/dashboard", headers=co.manager)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["due_soon_window_days"] == 3
    assert data["summary"]["total_projects"] == 1
    assert data["summary"]["total_tasks"] == 1
    assert data["projects"][0]["project_id"] == project["id"]


def _due_in(days: int) -> str:
    return (datetime.now(UTC) + timedelta(days=days)).isoformat()


@pytest.mark.asyncio
async def test_due_soon_window_depends_on_viewer(client: AsyncClient, builder):
    """Owners look seven days ahead, managers and members three."""
    co = await builder.company("duesoon")
    alice, bob = co.members
    project = await builder.project(co)
    team = await builder.team(co, project["id"])
    await builder.task(co, team["id"], alice["id"], title="next week", due_date=_due_in(5))
    await builder.task(co, team["id"], bob["id"], title="this week", due_date=_due_in(2))
    await builder.task(co, team["id"], bob["id"], title="shipped", status="completed", due_date=_due_in(1))

    resp = await client.get("/v1/companies/dashboard", headers=co.owner)
    assert resp.json()["summary"]["due_soon_tasks"] == 2

    resp = await client.get("/v1/projects/dashboard", headers=co.manager)
    data = resp.json()
    assert data["summary"]["due_soon_tasks"] == 1
    assert [t["title"] for t in data["due_soon_tasks"]] == ["this week"]

    resp = await client.get("/v1/member/dashboard", headers=alice["headers"])
    assert resp.json()["summary"]["my_due_soon"] == 0
    resp = await client.get("/v1/member/dashboard", headers=bob["headers"])
    assert resp.json()["summary"]["my_due_soon"] == 1
