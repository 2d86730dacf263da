"""Per-project progress roll-up.

Pure functions over task collections; the database side lives in
``app.services.dashboards``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from pydantic import BaseModel

from app.models.task import TaskStatus


class ProgressSource(Protocol):
    status: TaskStatus
    progress: int | None
    estimated_hours: float | None
    due_date: datetime | None


class ProjectProgress(BaseModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    overdue_tasks: int = 0
    avg_progress: int = 0
    total_estimated_hours: float = 0.0
    weighted_progress: int = 0
    progress_percent: int = 0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (87.5 -> 88)."""
    return int(math.floor(value + 0.5))


def effective_progress(task: ProgressSource) -> int:
    """Stored progress, except that a completed task always counts as 100."""
    if task.status == TaskStatus.COMPLETED:
        return 100
    return task.progress or 0


def is_overdue(task: ProgressSource, now: datetime) -> bool:
    return (
        task.status != TaskStatus.COMPLETED
        and task.due_date is not None
        and task.due_date < now
    )


def compute_project_progress(tasks: Iterable[ProgressSource], now: datetime) -> ProjectProgress:
    tasks = list(tasks)
    total = len(tasks)
    if total == 0:
        return ProjectProgress()

    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    overdue = sum(1 for t in tasks if is_overdue(t, now))

    avg = round_half_up(sum(effective_progress(t) for t in tasks) / total)

    total_hours = sum(t.estimated_hours or 0.0 for t in tasks)
    if total_hours > 0:
        weighted_sum = sum(effective_progress(t) * (t.estimated_hours or 0.0) for t in tasks)
        weighted = round_half_up(weighted_sum / total_hours)
        percent = weighted
    else:
        weighted = avg
        percent = avg

    return ProjectProgress(
        total_tasks=total,
        completed_tasks=completed,
        overdue_tasks=overdue,
        avg_progress=avg,
        total_estimated_hours=total_hours,
        weighted_progress=weighted,
        progress_percent=percent,
    )
