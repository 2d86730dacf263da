"""Blob store for uploaded files (report attachments, profile photos)."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path

from app.core.errors import ValidationFailed

logger = logging.getLogger(__name__)

REPORT_CONTENT_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})
IMAGE_CONTENT_TYPES = frozenset({"image/png", "image/jpg", "image/jpeg"})


class UnsupportedType(ValidationFailed):
    code = "unsupported_type"
    default_detail = "Unsupported file type"


@dataclass(frozen=True, slots=True)
class StoredBlob:
    url: str
    content_type: str
    size: int


class BlobStore:
    """Local-disk store returning public URLs under ``url_base``."""

    def __init__(self, root: str | Path, url_base: str, max_size: int) -> None:
        self.root = Path(root)
        self.url_base = url_base.rstrip("/")
        self.max_size = max_size

    async def store(
        self,
        content: bytes,
        content_type: str | None,
        filename: str | None,
        allowed: frozenset[str],
    ) -> StoredBlob:
        if content_type not in allowed:
            raise UnsupportedType(
                f"Unsupported file type {content_type!r}. Allowed: {sorted(allowed)}"
            )
        if len(content) > self.max_size:
            raise ValidationFailed(f"File exceeds {self.max_size // (1024 * 1024)} MB limit")

        suffix = Path(filename or "").suffix.lower() or mimetypes.guess_extension(content_type) or ""
        name = f"{uuid.uuid4().hex}{suffix}"
        await asyncio.to_thread(self._write, name, content)
        return StoredBlob(url=f"{self.url_base}/{name}", content_type=content_type, size=len(content))

    async def discard(self, url: str) -> None:
        """Remove a stored file; failures are logged, never raised."""
        name = url.rsplit("/", 1)[-1]
        try:
            await asyncio.to_thread((self.root / name).unlink, True)
        except OSError:
            logger.warning("Failed to delete stored file %s", name, exc_info=True)

    def _write(self, name: str, content: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_bytes(content)
