"""Manager team endpoints — create a team on a project, edit its membership."""

import uuid

from fastapi import APIRouter, status

from app.api.deps import ManagerAuth, Session
from app.core.errors import Conflict, Forbidden
from app.models.account import Account
from app.models.project import Project, ProjectTeam
from app.models.team import Team, TeamCreate, TeamMember, TeamRead, TeamUpdate
from app.services import lifecycle
from app.services.tenancy import TenantScope, assert_project_open

router = APIRouter(prefix="/teams", tags=["teams"])


def _read(team: Team, member_ids) -> TeamRead:
    return TeamRead.model_validate(team, update={"member_ids": sorted(member_ids, key=str)})


async def _member_ids(scope: TenantScope, team_id: uuid.UUID) -> list[uuid.UUID]:
    return await scope.column(TeamMember.account_id, TeamMember.team_id == team_id)


@router.post("", response_model=TeamRead, status_code=status.HTTP_201_CREATED)
async def create_team(body: TeamCreate, auth: ManagerAuth, session: Session) -> TeamRead:
    scope = auth.scope(session)
    project = await scope.get(
        Project, body.project_id, Project.manager_id == auth.account_id, detail="Project not found"
    )
    assert_project_open(project)

    if await scope.exists(Team, Team.name == body.name):
        raise Conflict(f"Team name '{body.name}' is already taken")

    member_ids = list(dict.fromkeys(body.member_ids))
    if await scope.count(Account, Account.id.in_(member_ids)) != len(member_ids):
        raise Forbidden("Some members do not belong to your company")

    team = scope.add(
        Team(
            project_id=project.id,
            manager_id=auth.account_id,
            name=body.name,
            description=body.description,
        )
    )
    await session.flush()  # populate team.id
    for account_id in member_ids:
        scope.add(TeamMember(team_id=team.id, account_id=account_id))
    scope.add(ProjectTeam(project_id=project.id, team_id=team.id))
    await session.commit()
    await session.refresh(team)
    return _read(team, member_ids)


@router.get("", response_model=list[TeamRead])
async def list_teams(auth: ManagerAuth, session: Session) -> list[TeamRead]:
    scope = auth.scope(session)
    teams = await scope.all(
        Team, Team.manager_id == auth.account_id, order_by=(Team.created_at.desc(),)
    )
    return [_read(t, await _member_ids(scope, t.id)) for t in teams]


@router.patch("/{team_id}", response_model=TeamRead)
async def edit_team(
    team_id: uuid.UUID,
    body: TeamUpdate,
    auth: ManagerAuth,
    session: Session,
) -> TeamRead:
    """Rename the team and add or remove members.

    Removing a member deletes the tasks assigned to them in this team.
    """
    edit = await lifecycle.edit_team(auth.scope(session), team_id, auth.account_id, body)
    await session.refresh(edit.team)
    return _read(edit.team, edit.member_ids)
