"""Notification sink — enqueue best-effort email jobs on the arq queue."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from arq.connections import ArqRedis, RedisSettings, create_pool

logger = logging.getLogger(__name__)


class NotificationEvent(StrEnum):
    ACCOUNT_VERIFY = "account.verify"
    PASSWORD_RESET = "account.password_reset"
    PROJECT_CLOSED = "project.closed"


class Notifier:
    """Fire-and-forget event sink.

    Built once in the application lifespan and handed to routes through a
    dependency. ``notify`` never raises: a delivery problem must not change
    the outcome of the request that triggered it.
    """

    def __init__(self, pool: ArqRedis | None) -> None:
        self._pool = pool

    @classmethod
    async def connect(cls, redis_settings: RedisSettings) -> Notifier:
        try:
            pool = await create_pool(redis_settings)
        except Exception:
            logger.warning("Notification queue unavailable; notifications disabled", exc_info=True)
            return cls(None)
        return cls(pool)

    async def notify(self, event: NotificationEvent, payload: dict[str, Any]) -> None:
        if self._pool is None:
            logger.warning("Dropping %s notification: queue not connected", event)
            return
        try:
            await self._pool.enqueue_job(
                "send_notification",
                event=str(event),
                payload={k: str(v) if v is not None else None for k, v in payload.items()},
            )
        except Exception:
            logger.warning("Failed to enqueue %s notification", event, exc_info=True)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None
