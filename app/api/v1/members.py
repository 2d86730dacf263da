"""Member endpoints — own task status, dashboard, teams and projects."""

import uuid

from fastapi import APIRouter

from app.api.deps import MemberAuth, Session
from app.core.errors import Forbidden
from app.models.base import utcnow
from app.models.project import Project, ProjectSummary
from app.models.task import Task, TaskRead, TaskStatusUpdate
from app.models.team import Team, TeamSummary
from app.services.dashboards import MemberDashboard, member_dashboard, member_team_ids
from app.services.task_state import apply_status, parse_status
from app.services.tenancy import assert_project_open, assert_scope

router = APIRouter(prefix="/member", tags=["member"])

# Shared by "absent" and "someone else's" so the two read the same
_TASK_NOT_YOURS = "Task not found or not assigned to you"


@router.put("/tasks/{task_id}/status", response_model=TaskRead)
async def update_task_status(
    task_id: uuid.UUID,
    body: TaskStatusUpdate,
    auth: MemberAuth,
    session: Session,
) -> TaskRead:
    scope = auth.scope(session)
    task_status = parse_status(body.status)
    task = await scope.get(Task, task_id, detail=_TASK_NOT_YOURS)
    assert_scope(
        task,
        auth.tenant_id,
        lambda t: t.assignee_id == auth.account_id,
        detail=_TASK_NOT_YOURS,
    )
    assert_project_open(await scope.get(Project, task.project_id))

    apply_status(task, task_status)
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return TaskRead.model_validate(task)


@router.get("/tasks", response_model=list[TaskRead])
async def list_my_tasks(auth: MemberAuth, session: Session) -> list[TaskRead]:
    tasks = await auth.scope(session).all(
        Task, Task.assignee_id == auth.account_id, order_by=(Task.created_at.desc(),)
    )
    return [TaskRead.model_validate(t) for t in tasks]


@router.get("/dashboard", response_model=MemberDashboard)
async def get_dashboard(auth: MemberAuth, session: Session) -> MemberDashboard:
    return await member_dashboard(auth.scope(session), auth.account_id, utcnow())


@router.get("/teams", response_model=list[TeamSummary])
async def list_my_teams(auth: MemberAuth, session: Session) -> list[TeamSummary]:
    scope = auth.scope(session)
    team_ids = await member_team_ids(scope, auth.account_id)
    teams = await scope.all(Team, Team.id.in_(team_ids), order_by=(Team.name.asc(),))
    return [TeamSummary.model_validate(t) for t in teams]


@router.get("/projects", response_model=list[ProjectSummary])
async def list_my_projects(auth: MemberAuth, session: Session) -> list[ProjectSummary]:
    """Projects the caller's teams work on."""
    scope = auth.scope(session)
    team_ids = await member_team_ids(scope, auth.account_id)
    project_ids = await scope.column(Team.project_id, Team.id.in_(team_ids))
    projects = await scope.all(
        Project, Project.id.in_(project_ids), order_by=(Project.created_at.desc(),)
    )
    return [ProjectSummary.model_validate(p) for p in projects]
