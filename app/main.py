"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.v1 import v1_router
from app.core.config import get_settings
from app.core.database import init_db
from app.core.errors import register_exception_handlers
from app.services.notifier import Notifier
from app.services.storage import BlobStore
from app.workers.main import _redis_settings

_settings = get_settings()

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    app.state.blob_store = BlobStore(
        _settings.upload_dir, _settings.upload_url_base, _settings.max_upload_size
    )
    app.state.notifier = await Notifier.connect(_redis_settings())
    yield
    await app.state.notifier.close()


app = FastAPI(
    title="TeamTrack",
    version="0.1.0",
    description="Multi-tenant project, team and task tracking",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}


# ── Uploaded files ───────────────────────────────────────────
app.mount(
    "/uploads",
    StaticFiles(directory=_settings.upload_dir, check_dir=False),
    name="uploads",
)
