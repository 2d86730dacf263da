"""V1 API router aggregation."""

from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.companies import router as companies_router
from app.api.v1.members import router as members_router
from app.api.v1.projects import router as projects_router
from app.api.v1.reports import router as reports_router
from app.api.v1.tasks import router as tasks_router
from app.api.v1.teams import router as teams_router
from app.api.v1.tracking import router as tracking_router
from app.api.v1.users import router as users_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(companies_router)
v1_router.include_router(projects_router)
v1_router.include_router(teams_router)
v1_router.include_router(tasks_router)
v1_router.include_router(members_router)
v1_router.include_router(tracking_router)
v1_router.include_router(reports_router)
v1_router.include_router(users_router)
