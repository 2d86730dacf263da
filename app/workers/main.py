"""ARQ worker entrypoint."""

import logging

from arq.connections import RedisSettings

from app.core.config import get_settings
from app.workers.notify import SmtpMailer, send_notification


def _redis_settings() -> RedisSettings:
    """Parse REDIS_URL into ARQ RedisSettings."""
    settings = get_settings()
    # redis://host:port/db
    url = settings.redis_url
    rest = url.split("://", 1)[1] if "://" in url else url
    host_port, _, db = rest.partition("/")
    host, _, port = host_port.partition(":")
    return RedisSettings(
        host=host or "localhost",
        port=int(port) if port else 6379,
        database=int(db) if db else 0,
    )


async def startup(ctx: dict) -> None:
    """Called when the worker starts."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    ctx["mailer"] = SmtpMailer(settings)


async def shutdown(ctx: dict) -> None:
    """Called when the worker shuts down."""


class WorkerSettings:
    """ARQ worker configuration."""
    functions = [send_notification]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = _redis_settings()
    max_jobs = 10
    job_timeout = 60


if __name__ == "__main__":
    from arq import run_worker
    run_worker(WorkerSettings)  # type: ignore[arg-type]
