"""Import all models so SQLModel.metadata picks them up."""

from app.models.account import (
    Account,
    AccountInvite,
    AccountRead,
    AccountRole,
    AccountRoleUpdate,
    SignupRequest,
)
from app.models.project import (
    Project,
    ProjectCreate,
    ProjectRead,
    ProjectStatus,
    ProjectSummary,
    ProjectTeam,
    ProjectUpdate,
)
from app.models.report import Report, ReportRead
from app.models.task import (
    Task,
    TaskCreate,
    TaskPriority,
    TaskRead,
    TaskStatus,
    TaskStatusUpdate,
    TaskSummary,
    TaskUpdate,
)
from app.models.team import Team, TeamCreate, TeamMember, TeamRead, TeamSummary, TeamUpdate
from app.models.tenant import Tenant, TenantCreate, TenantRead

__all__ = [
    "Account",
    "AccountInvite",
    "AccountRead",
    "AccountRole",
    "AccountRoleUpdate",
    "Project",
    "ProjectCreate",
    "ProjectRead",
    "ProjectStatus",
    "ProjectSummary",
    "ProjectTeam",
    "ProjectUpdate",
    "Report",
    "ReportRead",
    "SignupRequest",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskRead",
    "TaskStatus",
    "TaskStatusUpdate",
    "TaskSummary",
    "TaskUpdate",
    "Team",
    "TeamCreate",
    "TeamMember",
    "TeamRead",
    "TeamSummary",
    "TeamUpdate",
    "Tenant",
    "TenantCreate",
    "TenantRead",
]
