"""Project progress tracking — per-project completion roll-ups."""

import uuid

from fastapi import APIRouter, Query

from app.api.deps import Auth, Session
from app.models.base import utcnow
from app.services.dashboards import ProjectTracking, TrackingPage, tracking_for_project, tracking_page

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.get("/projects", response_model=TrackingPage)
async def list_project_tracking(
    auth: Auth,
    session: Session,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> TrackingPage:
    """Owners see every project in the company, managers only their own."""
    return await tracking_page(
        auth.scope(session), auth.role, auth.account_id, page, limit, utcnow()
    )


@router.get("/projects/{project_id}", response_model=ProjectTracking)
async def get_project_tracking(project_id: uuid.UUID, auth: Auth, session: Session) -> ProjectTracking:
    return await tracking_for_project(
        auth.scope(session), auth.role, auth.account_id, project_id, utcnow()
    )
