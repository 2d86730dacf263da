"""Manager task endpoints — create and edit tasks in the caller's teams."""

import uuid

from fastapi import APIRouter, status

from app.api.deps import ManagerAuth, Session
from app.core.errors import Forbidden
from app.models.base import utcnow
from app.models.project import Project
from app.models.task import Task, TaskCreate, TaskRead, TaskUpdate
from app.models.team import Team, TeamMember
from app.services.task_state import apply_status, check_progress, parse_status, status_for_progress
from app.services.tenancy import TenantScope, assert_project_open

router = APIRouter(prefix="/tasks", tags=["tasks"])


async def _open_team(scope: TenantScope, team_id: uuid.UUID, manager_id: uuid.UUID) -> Team:
    """The caller's team, provided its project still accepts writes."""
    team = await scope.get(
        Team, team_id, Team.manager_id == manager_id, detail="Team not found or not yours"
    )
    assert_project_open(await scope.get(Project, team.project_id))
    return team


async def _require_member(scope: TenantScope, team_id: uuid.UUID, account_id: uuid.UUID) -> None:
    if not await scope.exists(
        TeamMember, TeamMember.team_id == team_id, TeamMember.account_id == account_id
    ):
        raise Forbidden("Assignee is not a member of this team")


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(body: TaskCreate, auth: ManagerAuth, session: Session) -> TaskRead:
    scope = auth.scope(session)
    task_status = parse_status(body.status)
    team = await _open_team(scope, body.team_id, auth.account_id)
    await _require_member(scope, team.id, body.assignee_id)

    task = Task(
        project_id=team.project_id,
        creator_id=auth.account_id,
        **body.model_dump(exclude={"status"}),
    )
    apply_status(task, task_status)
    scope.add(task)
    await session.commit()
    await session.refresh(task)
    return TaskRead.model_validate(task)


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    auth: ManagerAuth,
    session: Session,
    team_id: uuid.UUID | None = None,
) -> list[TaskRead]:
    scope = auth.scope(session)
    team_ids = await scope.column(Team.id, Team.manager_id == auth.account_id)
    where = [Task.team_id.in_(team_ids)]
    if team_id is not None:
        where.append(Task.team_id == team_id)
    tasks = await scope.all(Task, *where, order_by=(Task.created_at.desc(),))
    return [TaskRead.model_validate(t) for t in tasks]


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    auth: ManagerAuth,
    session: Session,
) -> TaskRead:
    """Edit any field of a task in one of the caller's teams.

    The status rules are re-applied after every write so ``status`` and
    ``progress`` stay consistent. A progress-only edit moves the status to
    match; a progress that contradicts an explicit status is rejected.
    """
    scope = auth.scope(session)
    task = await scope.get(Task, task_id, detail="Task not found")
    team = await _open_team(scope, task.team_id, auth.account_id)

    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    progress = updates.get("progress")
    if "status" in updates:
        task_status = parse_status(updates.pop("status"))
        if progress is not None:
            check_progress(task_status, progress)
    elif progress is not None:
        task_status = status_for_progress(task.status, progress)
    else:
        task_status = task.status
    if "assignee_id" in updates:
        await _require_member(scope, team.id, updates["assignee_id"])

    for key, value in updates.items():
        setattr(task, key, value)
    apply_status(task, task_status)
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return TaskRead.model_validate(task)
