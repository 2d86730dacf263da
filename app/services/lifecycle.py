"""Cascading lifecycle operations: account / project deletion, project close,
team membership edits.

Each operation is a chain of dependent steps (see ``app.services.chain``)
executed in one database transaction. Steps run strictly in order because
later steps use state captured by earlier ones; the commit happens once at
the end and any failure rolls the whole operation back.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, assert_never

from pydantic import BaseModel

from app.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from app.models.account import Account, AccountRole
from app.models.base import utcnow
from app.models.project import Project, ProjectStatus, ProjectTeam
from app.models.task import Task, TaskStatus
from app.models.team import Team, TeamMember, TeamUpdate
from app.models.tenant import Tenant
from app.services.chain import Continue, Handled, Step, run_chain
from app.services.notifier import NotificationEvent, Notifier
from app.services.tenancy import TenantScope, assert_project_open

logger = logging.getLogger(__name__)


class AccountDeletion(BaseModel):
    account_id: uuid.UUID
    tasks_deleted: int
    teams_updated: int
    project_links_removed: int


class ProjectDeletion(BaseModel):
    project_id: uuid.UUID
    teams_deleted: int
    tasks_deleted: int


class ProjectClosure(BaseModel):
    project_id: uuid.UUID
    status: ProjectStatus
    tasks_completed: int
    already_closed: bool = False


async def _transaction(scope: TenantScope, name: str, steps: list[Step], initial: Any) -> Any:
    logger.info("Cascade %s started (tenant %s)", name, scope.tenant_id)
    try:
        outcome = await run_chain(name, steps, initial)
    except Exception:
        await scope.session.rollback()
        raise
    await scope.session.commit()
    logger.info("Cascade %s finished (tenant %s)", name, scope.tenant_id)
    return outcome


async def has_live_projects(scope: TenantScope, manager_id: uuid.UUID) -> bool:
    return await scope.exists(
        Project,
        Project.manager_id == manager_id,
        Project.status != ProjectStatus.COMPLETED,
    )


# ── Account deletion ──────────────────────────────────────────


@dataclass
class _AccountCascade:
    account_id: uuid.UUID
    account: Account | None = None
    team_ids: list[uuid.UUID] = field(default_factory=list)
    tasks_deleted: int = 0
    links_removed: int = 0


async def delete_account(
    scope: TenantScope, account_id: uuid.UUID, actor_id: uuid.UUID, actor_role: AccountRole
) -> AccountDeletion:
    """Delete an account with its tasks, memberships and project-team links."""

    async def load(ctx: _AccountCascade):
        account = await scope.first(Account, Account.id == ctx.account_id)
        if account is None:
            return Handled(NotFound("Account not found"))

        match actor_role:
            case AccountRole.OWNER:
                if account.id == actor_id:
                    return Handled(Forbidden("Owners cannot delete their own account"))
            case AccountRole.MANAGER:
                if account.role != AccountRole.MEMBER:
                    return Handled(Forbidden("Managers can only remove members"))
            case AccountRole.MEMBER:
                return Handled(Forbidden("Members cannot remove accounts"))
            case _:
                assert_never(actor_role)

        if account.role == AccountRole.MANAGER and await has_live_projects(scope, account.id):
            return Handled(Conflict("Account still manages open projects"))

        ctx.account = account
        return Continue(ctx)

    async def capture_teams(ctx: _AccountCascade):
        # Must run before memberships are pulled, or there is nothing left to prune
        ctx.team_ids = await scope.column(TeamMember.team_id, TeamMember.account_id == ctx.account_id)
        return Continue(ctx)

    async def delete_tasks(ctx: _AccountCascade):
        ctx.tasks_deleted = await scope.delete(Task, Task.assignee_id == ctx.account_id)
        return Continue(ctx)

    async def pull_memberships(ctx: _AccountCascade):
        await scope.delete(TeamMember, TeamMember.account_id == ctx.account_id)
        return Continue(ctx)

    async def prune_project_teams(ctx: _AccountCascade):
        if ctx.team_ids:
            ctx.links_removed = await scope.delete(ProjectTeam, ProjectTeam.team_id.in_(ctx.team_ids))
        return Continue(ctx)

    async def delete_record(ctx: _AccountCascade):
        await scope.delete(Account, Account.id == ctx.account_id)
        return Continue(ctx)

    steps = [
        Step("load", load, mutates=False),
        Step("capture_teams", capture_teams, mutates=False),
        Step("delete_tasks", delete_tasks),
        Step("pull_memberships", pull_memberships),
        Step("prune_project_teams", prune_project_teams),
        Step("delete_account", delete_record),
    ]
    ctx = await _transaction(scope, "delete_account", steps, _AccountCascade(account_id))
    return AccountDeletion(
        account_id=ctx.account_id,
        tasks_deleted=ctx.tasks_deleted,
        teams_updated=len(ctx.team_ids),
        project_links_removed=ctx.links_removed,
    )


# ── Project deletion ──────────────────────────────────────────


@dataclass
class _ProjectCascade:
    project_id: uuid.UUID
    team_ids: list[uuid.UUID] = field(default_factory=list)
    tasks_deleted: int = 0
    teams_deleted: int = 0


async def delete_project(scope: TenantScope, project_id: uuid.UUID, force: bool = False) -> ProjectDeletion:
    """Delete a project with its teams and tasks.

    Only closed projects may be deleted unless ``force`` is set.
    """

    async def load(ctx: _ProjectCascade):
        project = await scope.first(Project, Project.id == ctx.project_id)
        if project is None:
            return Handled(NotFound("Project not found"))
        if project.status != ProjectStatus.COMPLETED and not force:
            return Handled(Conflict("Project must be closed by its manager before deletion"))
        ctx.team_ids = await scope.column(Team.id, Team.project_id == ctx.project_id)
        return Continue(ctx)

    async def delete_tasks(ctx: _ProjectCascade):
        ctx.tasks_deleted = await scope.delete(Task, Task.project_id == ctx.project_id)
        return Continue(ctx)

    async def delete_teams(ctx: _ProjectCascade):
        if ctx.team_ids:
            await scope.delete(TeamMember, TeamMember.team_id.in_(ctx.team_ids))
            await scope.delete(ProjectTeam, ProjectTeam.team_id.in_(ctx.team_ids))
        await scope.delete(ProjectTeam, ProjectTeam.project_id == ctx.project_id)
        ctx.teams_deleted = await scope.delete(Team, Team.project_id == ctx.project_id)
        return Continue(ctx)

    async def delete_record(ctx: _ProjectCascade):
        await scope.delete(Project, Project.id == ctx.project_id)
        return Continue(ctx)

    steps = [
        Step("load", load, mutates=False),
        Step("delete_tasks", delete_tasks),
        Step("delete_teams", delete_teams),
        Step("delete_project", delete_record),
    ]
    ctx = await _transaction(scope, "delete_project", steps, _ProjectCascade(project_id))
    return ProjectDeletion(
        project_id=ctx.project_id,
        teams_deleted=ctx.teams_deleted,
        tasks_deleted=ctx.tasks_deleted,
    )


# ── Project close ─────────────────────────────────────────────


async def close_project(
    scope: TenantScope,
    project_id: uuid.UUID,
    manager_id: uuid.UUID,
    notifier: Notifier,
) -> ProjectClosure:
    """Mark a project completed and bulk-complete its tasks.

    The bulk update writes ``status`` only; stored ``progress`` is left as
    is; roll-ups count completed tasks as 100 regardless.
    """
    project: Project | None = None

    async def load(_: None):
        nonlocal project
        project = await scope.first(
            Project, Project.id == project_id, Project.manager_id == manager_id
        )
        if project is None:
            return Handled(NotFound("Project not found"))
        if project.status == ProjectStatus.COMPLETED:
            return Handled(
                ProjectClosure(
                    project_id=project.id,
                    status=project.status,
                    tasks_completed=0,
                    already_closed=True,
                )
            )
        return Continue(project)

    async def mark_completed(proj: Project):
        proj.status = ProjectStatus.COMPLETED
        proj.updated_at = utcnow()
        scope.session.add(proj)
        await scope.session.flush()
        return Continue(proj)

    async def complete_tasks(proj: Project):
        count = await scope.update(
            Task,
            {"status": TaskStatus.COMPLETED, "updated_at": utcnow()},
            Task.project_id == proj.id,
        )
        return Continue(
            ProjectClosure(project_id=proj.id, status=proj.status, tasks_completed=count)
        )

    steps = [
        Step("load", load, mutates=False),
        Step("mark_completed", mark_completed),
        Step("complete_tasks", complete_tasks),
    ]
    closure: ProjectClosure = await _transaction(scope, "close_project", steps, None)

    if not closure.already_closed and project is not None:
        try:
            await _notify_project_closed(scope, project, manager_id, notifier)
        except Exception:
            logger.warning("Close notification failed for project %s", project.id, exc_info=True)
    return closure


async def _notify_project_closed(
    scope: TenantScope, project: Project, manager_id: uuid.UUID, notifier: Notifier
) -> None:
    tenant = await scope.session.get(Tenant, scope.tenant_id)
    if tenant is None:
        return
    owner = await scope.session.get(Account, tenant.owner_id)
    manager = await scope.first(Account, Account.id == manager_id)
    if owner is None:
        return
    await notifier.notify(
        NotificationEvent.PROJECT_CLOSED,
        {
            "to": owner.email,
            "project_name": project.name,
            "manager_name": manager.name if manager else "",
        },
    )


# ── Team membership edits ─────────────────────────────────────


@dataclass
class TeamEdit:
    team: Team
    member_ids: set[uuid.UUID] = field(default_factory=set)
    added: list[uuid.UUID] = field(default_factory=list)
    removed: list[uuid.UUID] = field(default_factory=list)
    tasks_deleted: int = 0


async def edit_team(
    scope: TenantScope, team_id: uuid.UUID, manager_id: uuid.UUID, body: TeamUpdate
) -> TeamEdit:
    """Rename a team and add / remove members.

    Adding is idempotent. Removing a member also deletes the tasks assigned
    to them within this team only.
    """
    overlap = set(body.add_member_ids) & set(body.remove_member_ids)
    if overlap:
        raise ValidationFailed("A member cannot be added and removed in the same request")

    async def load(_: None):
        team = await scope.first(Team, Team.id == team_id, Team.manager_id == manager_id)
        if team is None:
            return Handled(NotFound("Team not found or not yours"))
        project = await scope.first(Project, Project.id == team.project_id)
        if project is not None:
            assert_project_open(project)

        if body.name is not None and body.name != team.name:
            if await scope.exists(Team, Team.name == body.name, Team.id != team.id):
                return Handled(Conflict(f"Team name '{body.name}' is already taken"))

        if body.add_member_ids:
            wanted = set(body.add_member_ids)
            found = await scope.count(Account, Account.id.in_(wanted))
            if found != len(wanted):
                return Handled(Forbidden("Some members do not belong to your company"))

        ctx = TeamEdit(team=team)
        ctx.member_ids = set(await scope.column(TeamMember.account_id, TeamMember.team_id == team.id))
        return Continue(ctx)

    async def update_fields(ctx: TeamEdit):
        if body.name is not None:
            ctx.team.name = body.name
        if body.description is not None:
            ctx.team.description = body.description
        ctx.team.updated_at = utcnow()
        scope.session.add(ctx.team)
        return Continue(ctx)

    async def add_members(ctx: TeamEdit):
        for account_id in dict.fromkeys(body.add_member_ids):
            if account_id in ctx.member_ids:
                continue
            scope.add(TeamMember(team_id=ctx.team.id, account_id=account_id))
            ctx.member_ids.add(account_id)
            ctx.added.append(account_id)
        await scope.session.flush()
        return Continue(ctx)

    async def remove_members(ctx: TeamEdit):
        removing = [a for a in dict.fromkeys(body.remove_member_ids) if a in ctx.member_ids]
        if removing:
            await scope.delete(
                TeamMember,
                TeamMember.team_id == ctx.team.id,
                TeamMember.account_id.in_(removing),
            )
            ctx.tasks_deleted = await scope.delete(
                Task,
                Task.team_id == ctx.team.id,
                Task.assignee_id.in_(removing),
            )
            ctx.member_ids.difference_update(removing)
            ctx.removed = removing
        return Continue(ctx)

    steps = [
        Step("load", load, mutates=False),
        Step("update_fields", update_fields),
        Step("add_members", add_members),
        Step("remove_members", remove_members),
    ]
    return await _transaction(scope, "edit_team", steps, None)
