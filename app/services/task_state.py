"""Task status state machine.

Every status write goes through :func:`apply_status`, which recomputes the
derived fields so ``status``, ``progress``, ``start_date`` and
``completed_at`` always agree:

    pending      progress 0, completed_at cleared
    in_progress  start_date defaults to now, progress bumped 0 -> 1,
                 completed_at cleared
    completed    progress 100, start_date and completed_at default to now
                 (an existing completed_at is kept)
    blocked      start_date defaults to now once work has started,
                 completed_at cleared

Any status may be written from any other, including re-opening a completed
task.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import assert_never

from app.core.errors import InvalidStatus, ValidationFailed
from app.models.base import utcnow
from app.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)


def parse_status(value: str | TaskStatus) -> TaskStatus:
    """Coerce a raw status value, rejecting anything outside the enum."""
    try:
        return TaskStatus(value)
    except ValueError as exc:
        valid = ", ".join(s.value for s in TaskStatus)
        raise InvalidStatus(f"Invalid status value {value!r}. Valid: {valid}") from exc


def apply_status(task: Task, status: TaskStatus, now: datetime | None = None) -> Task:
    now = now or utcnow()
    previous = task.status
    task.status = status

    match status:
        case TaskStatus.PENDING:
            task.progress = 0
            task.completed_at = None
        case TaskStatus.IN_PROGRESS:
            if task.start_date is None:
                task.start_date = now
            if not task.progress:
                task.progress = 1
            task.completed_at = None
        case TaskStatus.COMPLETED:
            task.progress = 100
            if task.start_date is None:
                task.start_date = now
            if task.completed_at is None:
                task.completed_at = now
        case TaskStatus.BLOCKED:
            if task.start_date is None and (task.progress or 0) > 0:
                task.start_date = now
            task.completed_at = None
        case _:
            assert_never(status)

    if previous == TaskStatus.COMPLETED and status != TaskStatus.COMPLETED:
        logger.info("Task %s reopened: %s -> %s", task.id, previous, status)
    return task


def status_for_progress(current: TaskStatus, progress: int) -> TaskStatus:
    """Status implied by a progress-only edit.

    100 completes the task and 0 leaves a pending task pending. Anything in
    between starts a pending task or reopens a completed one. A blocked task
    stays blocked until it reaches 100.
    """
    if progress >= 100:
        return TaskStatus.COMPLETED
    match current:
        case TaskStatus.PENDING:
            return TaskStatus.IN_PROGRESS if progress > 0 else TaskStatus.PENDING
        case TaskStatus.COMPLETED:
            return TaskStatus.IN_PROGRESS
        case TaskStatus.IN_PROGRESS | TaskStatus.BLOCKED:
            return current
        case _:
            assert_never(current)


def check_progress(status: TaskStatus, progress: int) -> None:
    """Reject a progress value the status rules would overwrite."""
    if status == TaskStatus.PENDING and progress != 0:
        raise ValidationFailed("A pending task must have progress 0")
    if status == TaskStatus.COMPLETED and progress != 100:
        raise ValidationFailed("A completed task must have progress 100")
    if status == TaskStatus.IN_PROGRESS and progress == 0:
        raise ValidationFailed("An in-progress task must have progress above 0")
