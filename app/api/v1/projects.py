"""Manager project endpoints — create, edit, close, dashboard."""

import uuid

from fastapi import APIRouter, status

from app.api.deps import ManagerAuth, NotifierDep, Session
from app.core.errors import ValidationFailed
from app.models.base import utcnow
from app.models.project import Project, ProjectCreate, ProjectRead, ProjectStatus, ProjectTeam, ProjectUpdate
from app.services import lifecycle
from app.services.dashboards import ManagerDashboard, manager_dashboard
from app.services.lifecycle import ProjectClosure
from app.services.tenancy import TenantScope, assert_project_open

router = APIRouter(prefix="/projects", tags=["projects"])


async def _read(scope: TenantScope, project: Project) -> ProjectRead:
    team_ids = await scope.column(ProjectTeam.team_id, ProjectTeam.project_id == project.id)
    return ProjectRead.model_validate(project, update={"team_ids": team_ids})


async def _get_own_project(scope: TenantScope, project_id: uuid.UUID, manager_id: uuid.UUID) -> Project:
    return await scope.get(
        Project, project_id, Project.manager_id == manager_id, detail="Project not found"
    )


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(body: ProjectCreate, auth: ManagerAuth, session: Session) -> ProjectRead:
    scope = auth.scope(session)
    project = scope.add(Project(manager_id=auth.account_id, **body.model_dump()))
    await session.commit()
    await session.refresh(project)
    return await _read(scope, project)


@router.get("", response_model=list[ProjectRead])
async def list_projects(auth: ManagerAuth, session: Session) -> list[ProjectRead]:
    scope = auth.scope(session)
    projects = await scope.all(
        Project,
        Project.manager_id == auth.account_id,
        order_by=(Project.created_at.desc(),),
    )
    return [await _read(scope, p) for p in projects]


# Declared before /{project_id} so "dashboard" is not parsed as an id
@router.get("/dashboard", response_model=ManagerDashboard)
async def get_dashboard(auth: ManagerAuth, session: Session) -> ManagerDashboard:
    return await manager_dashboard(auth.scope(session), auth.account_id, utcnow())


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(project_id: uuid.UUID, auth: ManagerAuth, session: Session) -> ProjectRead:
    scope = auth.scope(session)
    return await _read(scope, await _get_own_project(scope, project_id, auth.account_id))


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    auth: ManagerAuth,
    session: Session,
) -> ProjectRead:
    """Edit fields or move the project between active and on hold."""
    scope = auth.scope(session)
    project = await _get_own_project(scope, project_id, auth.account_id)
    assert_project_open(project)

    if body.status == ProjectStatus.COMPLETED:
        raise ValidationFailed("Use the close action to complete a project")

    for key, value in body.model_dump(exclude_none=True).items():
        setattr(project, key, value)
    project.updated_at = utcnow()
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return await _read(scope, project)


@router.post("/{project_id}/close", response_model=ProjectClosure)
async def close_project(
    project_id: uuid.UUID,
    auth: ManagerAuth,
    session: Session,
    notifier: NotifierDep,
) -> ProjectClosure:
    """Complete the project and every task under it, then notify the owner."""
    return await lifecycle.close_project(auth.scope(session), project_id, auth.account_id, notifier)
