"""Reports — members submit write-ups with an optional document attached."""

import logging
import uuid
from typing import assert_never

from fastapi import APIRouter, Form, UploadFile, status

from app.api.deps import BlobStoreDep, MemberAuth, ManagerAuth, OwnerAuth, Session, StaffAuth
from app.core.errors import Forbidden, NotFound
from app.models.account import AccountRole
from app.models.project import Project
from app.models.report import Report, ReportRead
from app.models.team import Team, TeamMember
from app.services.dashboards import member_team_ids
from app.services.storage import REPORT_CONTENT_TYPES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportRead, status_code=status.HTTP_201_CREATED)
async def create_report(
    auth: MemberAuth,
    session: Session,
    blobs: BlobStoreDep,
    title: str = Form(..., min_length=1, max_length=255),
    team_id: uuid.UUID = Form(...),
    description: str = Form("", max_length=5000),
    file: UploadFile | None = None,
) -> ReportRead:
    """Submit a report for one of the caller's teams.

    The report is filed under the team's project.
    """
    scope = auth.scope(session)
    team = await scope.get(Team, team_id, detail="Team not found")
    if not await scope.exists(
        TeamMember, TeamMember.team_id == team.id, TeamMember.account_id == auth.account_id
    ):
        raise Forbidden("You are not a member of this team")

    report = Report(
        project_id=team.project_id,
        team_id=team.id,
        creator_id=auth.account_id,
        title=title,
        description=description,
    )
    if file is not None:
        blob = await blobs.store(
            await file.read(), file.content_type, file.filename, REPORT_CONTENT_TYPES
        )
        report.file_url = blob.url
        report.file_type = blob.content_type

    scope.add(report)
    await session.commit()
    await session.refresh(report)
    return ReportRead.model_validate(report)


@router.get("/team", response_model=list[ReportRead])
async def list_team_reports(auth: MemberAuth, session: Session) -> list[ReportRead]:
    scope = auth.scope(session)
    team_ids = await member_team_ids(scope, auth.account_id)
    reports = await scope.all(
        Report, Report.team_id.in_(team_ids), order_by=(Report.created_at.desc(),)
    )
    return [ReportRead.model_validate(r) for r in reports]


@router.get("/project/{project_id}", response_model=list[ReportRead])
async def list_project_reports(
    project_id: uuid.UUID, auth: ManagerAuth, session: Session
) -> list[ReportRead]:
    scope = auth.scope(session)
    await scope.get(
        Project, project_id, Project.manager_id == auth.account_id, detail="Project not found"
    )
    reports = await scope.all(
        Report, Report.project_id == project_id, order_by=(Report.created_at.desc(),)
    )
    return [ReportRead.model_validate(r) for r in reports]


@router.get("", response_model=list[ReportRead])
async def list_reports(auth: OwnerAuth, session: Session) -> list[ReportRead]:
    reports = await auth.scope(session).all(Report, order_by=(Report.created_at.desc(),))
    return [ReportRead.model_validate(r) for r in reports]


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: uuid.UUID,
    auth: StaffAuth,
    session: Session,
    blobs: BlobStoreDep,
) -> None:
    """Delete a report and discard its attachment.

    Managers may only delete reports filed under their own projects.
    """
    scope = auth.scope(session)
    report = await scope.get(Report, report_id, detail="Report not found")
    match auth.role:
        case AccountRole.OWNER:
            pass
        case AccountRole.MANAGER:
            if not await scope.exists(
                Project, Project.id == report.project_id, Project.manager_id == auth.account_id
            ):
                raise NotFound("Report not found")
        case AccountRole.MEMBER:
            raise Forbidden("Members cannot delete reports")
        case _:
            assert_never(auth.role)

    file_url = report.file_url
    await session.delete(report)
    await session.commit()
    logger.info("Report %s deleted (tenant %s)", report_id, auth.tenant_id)

    if file_url:
        await blobs.discard(file_url)
