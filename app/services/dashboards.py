"""Dashboard and tracking roll-ups, always tenant-scoped.

Owner views cover the whole tenant with a 7-day due-soon window; manager
views cover the caller's projects and member views the caller's tasks and
teams, both with a 3-day window.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, assert_never

from pydantic import BaseModel
from sqlalchemy import func
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import Forbidden, NotFound
from app.models.account import Account, AccountRole
from app.models.project import Project, ProjectStatus, ProjectSummary
from app.models.task import Task, TaskStatus, TaskSummary
from app.models.team import Team, TeamMember, TeamSummary
from app.services.progress import ProjectProgress, compute_project_progress
from app.services.tenancy import TenantScope

settings = get_settings()

DASHBOARD_LIST_LIMIT = 10


# ── Schemas ──────────────────────────────────────────────────

class ProjectTracking(ProjectProgress):
    project_id: uuid.UUID
    name: str
    status: ProjectStatus
    project_due_date: datetime | None


class TrackingPage(BaseModel):
    page: int
    limit: int
    total_projects: int
    tracking: list[ProjectTracking]


class ProjectCounts(BaseModel):
    total_projects: int = 0
    active_projects: int = 0
    on_hold_projects: int = 0
    completed_projects: int = 0


class OwnerSummary(ProjectCounts):
    total_teams: int
    total_accounts: int
    total_tasks: int
    overdue_tasks: int
    due_soon_tasks: int


class OwnerDashboard(BaseModel):
    summary: OwnerSummary
    due_soon_window_days: int
    latest_projects: list[ProjectSummary]
    overdue_tasks: list[TaskSummary]
    due_soon_tasks: list[TaskSummary]


class ManagerSummary(ProjectCounts):
    total_teams: int
    total_tasks: int
    overdue_tasks: int
    due_soon_tasks: int


class ManagerDashboard(BaseModel):
    summary: ManagerSummary
    due_soon_window_days: int
    projects: list[ProjectTracking]
    due_soon_tasks: list[TaskSummary]


class MemberSummary(BaseModel):
    my_total_tasks: int
    my_open_tasks: int
    my_overdue: int
    my_due_soon: int


class MemberDashboard(BaseModel):
    summary: MemberSummary
    due_soon_window_days: int
    teams: list[TeamSummary]
    my_next_tasks: list[TaskSummary]
    team_tasks: list[TaskSummary]


# ── Shared filters ───────────────────────────────────────────

def _open() -> Any:
    return Task.status != TaskStatus.COMPLETED


def _overdue(now: datetime) -> tuple[Any, ...]:
    return (_open(), Task.due_date.is_not(None), Task.due_date < now)


def _due_soon(now: datetime, days: int) -> tuple[Any, ...]:
    return (_open(), Task.due_date >= now, Task.due_date <= now + timedelta(days=days))


# Nulls last on every backend
_BY_DUE_DATE = (Task.due_date.is_(None), Task.due_date.asc())


def _task_summaries(tasks: list[Task]) -> list[TaskSummary]:
    return [TaskSummary.model_validate(t, from_attributes=True) for t in tasks]


async def _project_counts(scope: TenantScope, *where: Any) -> ProjectCounts:
    stmt = (
        select(Project.status, func.count())
        .where(scope.clause(Project), *where)
        .group_by(Project.status)
    )
    by_status = {status: n for status, n in (await scope.session.execute(stmt)).all()}
    return ProjectCounts(
        total_projects=sum(by_status.values()),
        active_projects=by_status.get(ProjectStatus.ACTIVE, 0),
        on_hold_projects=by_status.get(ProjectStatus.ON_HOLD, 0),
        completed_projects=by_status.get(ProjectStatus.COMPLETED, 0),
    )


# ── Tracking ─────────────────────────────────────────────────

async def track(scope: TenantScope, projects: list[Project], now: datetime) -> list[ProjectTracking]:
    """Progress rows for ``projects``, fetching their tasks in one query."""
    if not projects:
        return []
    tasks = await scope.all(Task, Task.project_id.in_([p.id for p in projects]))
    by_project: dict[uuid.UUID, list[Task]] = defaultdict(list)
    for task in tasks:
        by_project[task.project_id].append(task)

    return [
        ProjectTracking(
            project_id=p.id,
            name=p.name,
            status=p.status,
            project_due_date=p.due_date,
            **compute_project_progress(by_project[p.id], now).model_dump(),
        )
        for p in projects
    ]


def _tracking_filter(role: AccountRole, account_id: uuid.UUID) -> tuple[Any, ...]:
    match role:
        case AccountRole.OWNER:
            return ()
        case AccountRole.MANAGER:
            return (Project.manager_id == account_id,)
        case AccountRole.MEMBER:
            raise Forbidden("Members cannot list project tracking")
        case _:
            assert_never(role)


async def tracking_page(
    scope: TenantScope,
    role: AccountRole,
    account_id: uuid.UUID,
    page: int,
    limit: int,
    now: datetime,
) -> TrackingPage:
    where = _tracking_filter(role, account_id)
    projects = await scope.all(
        Project,
        *where,
        order_by=(Project.created_at.desc(),),
        offset=(page - 1) * limit,
        limit=limit,
    )
    total = await scope.count(Project, *where)
    return TrackingPage(
        page=page,
        limit=limit,
        total_projects=total,
        tracking=await track(scope, projects, now),
    )


async def tracking_for_project(
    scope: TenantScope,
    role: AccountRole,
    account_id: uuid.UUID,
    project_id: uuid.UUID,
    now: datetime,
) -> ProjectTracking:
    project = await scope.get(Project, project_id)
    match role:
        case AccountRole.OWNER:
            pass
        case AccountRole.MANAGER:
            if project.manager_id != account_id:
                raise NotFound("Project not found")
        case AccountRole.MEMBER:
            assigned = await scope.exists(
                Task, Task.project_id == project.id, Task.assignee_id == account_id
            )
            if not assigned:
                raise NotFound("Project not found")
        case _:
            assert_never(role)
    (row,) = await track(scope, [project], now)
    return row


# ── Dashboards ───────────────────────────────────────────────

async def owner_dashboard(scope: TenantScope, now: datetime) -> OwnerDashboard:
    days = settings.owner_due_soon_days
    counts = await _project_counts(scope)

    summary = OwnerSummary(
        **counts.model_dump(),
        total_teams=await scope.count(Team),
        total_accounts=await scope.count(Account),
        total_tasks=await scope.count(Task),
        overdue_tasks=await scope.count(Task, *_overdue(now)),
        due_soon_tasks=await scope.count(Task, *_due_soon(now, days)),
    )
    latest = await scope.all(
        Project, order_by=(Project.created_at.desc(),), limit=DASHBOARD_LIST_LIMIT
    )
    overdue = await scope.all(
        Task, *_overdue(now), order_by=_BY_DUE_DATE, limit=DASHBOARD_LIST_LIMIT
    )
    due_soon = await scope.all(
        Task, *_due_soon(now, days), order_by=_BY_DUE_DATE, limit=DASHBOARD_LIST_LIMIT
    )
    return OwnerDashboard(
        summary=summary,
        due_soon_window_days=days,
        latest_projects=[ProjectSummary.model_validate(p, from_attributes=True) for p in latest],
        overdue_tasks=_task_summaries(overdue),
        due_soon_tasks=_task_summaries(due_soon),
    )


async def manager_dashboard(scope: TenantScope, manager_id: uuid.UUID, now: datetime) -> ManagerDashboard:
    days = settings.member_due_soon_days
    mine = Project.manager_id == manager_id
    counts = await _project_counts(scope, mine)
    project_ids = await scope.column(Project.id, mine)
    in_mine = Task.project_id.in_(project_ids)

    summary = ManagerSummary(
        **counts.model_dump(),
        total_teams=await scope.count(Team, Team.manager_id == manager_id),
        total_tasks=await scope.count(Task, in_mine),
        overdue_tasks=await scope.count(Task, in_mine, *_overdue(now)),
        due_soon_tasks=await scope.count(Task, in_mine, *_due_soon(now, days)),
    )
    latest = await scope.all(
        Project, mine, order_by=(Project.created_at.desc(),), limit=DASHBOARD_LIST_LIMIT
    )
    due_soon = await scope.all(
        Task, in_mine, *_due_soon(now, days), order_by=_BY_DUE_DATE, limit=DASHBOARD_LIST_LIMIT
    )
    return ManagerDashboard(
        summary=summary,
        due_soon_window_days=days,
        projects=await track(scope, latest, now),
        due_soon_tasks=_task_summaries(due_soon),
    )


async def member_team_ids(scope: TenantScope, member_id: uuid.UUID) -> list[uuid.UUID]:
    return await scope.column(TeamMember.team_id, TeamMember.account_id == member_id)


async def member_dashboard(scope: TenantScope, member_id: uuid.UUID, now: datetime) -> MemberDashboard:
    days = settings.member_due_soon_days
    team_ids = await member_team_ids(scope, member_id)
    if not team_ids:
        raise NotFound("You are not assigned to any team yet")

    mine = Task.assignee_id == member_id
    summary = MemberSummary(
        my_total_tasks=await scope.count(Task, mine),
        my_open_tasks=await scope.count(Task, mine, _open()),
        my_overdue=await scope.count(Task, mine, *_overdue(now)),
        my_due_soon=await scope.count(Task, mine, *_due_soon(now, days)),
    )
    teams = await scope.all(
        Team, Team.id.in_(team_ids), order_by=(Team.created_at.desc(),), limit=DASHBOARD_LIST_LIMIT
    )
    next_tasks = await scope.all(
        Task, mine, _open(), order_by=_BY_DUE_DATE, limit=DASHBOARD_LIST_LIMIT
    )
    team_tasks = await scope.all(
        Task, Task.team_id.in_(team_ids), order_by=(Task.updated_at.desc(),), limit=DASHBOARD_LIST_LIMIT
    )
    return MemberDashboard(
        summary=summary,
        due_soon_window_days=days,
        teams=[TeamSummary.model_validate(t, from_attributes=True) for t in teams],
        my_next_tasks=_task_summaries(next_tasks),
        team_tasks=_task_summaries(team_tasks),
    )
