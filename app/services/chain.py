"""Sequential step driver for multi-step operations (cascades).

Each step receives the value handed on by the previous step and returns
either ``Continue(value)`` to pass control on, or ``Handled(outcome)`` to end
the chain with that outcome. The driver stops at the first ``Handled``, so an
operation produces exactly one outcome no matter how many steps could decide
to stop it. A ``Handled`` outcome that is an ``AppError`` is raised.

Steps flagged ``mutates`` change stored data. Once one of them has run, any
later exception is logged with the list of completed steps and re-raised as
``PartialCascadeFailure``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from app.core.errors import AppError, PartialCascadeFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Continue(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Handled:
    outcome: Any


StepResult = Continue[Any] | Handled


@dataclass(frozen=True, slots=True)
class Step:
    label: str
    run: Callable[[Any], Awaitable[StepResult]]
    mutates: bool = True


async def run_chain(name: str, steps: Sequence[Step], initial: Any) -> Any:
    value = initial
    completed: list[str] = []

    for step in steps:
        try:
            result = await step.run(value)
        except Exception as exc:
            if not completed:
                raise
            logger.exception(
                "Cascade %s failed at step %s after %s", name, step.label, completed
            )
            raise PartialCascadeFailure(name, list(completed)) from exc

        if step.mutates:
            completed.append(step.label)

        if isinstance(result, Handled):
            if isinstance(result.outcome, AppError):
                raise result.outcome
            return result.outcome
        value = result.value

    return value
