"""Staging of uploaded text documents.

An accepted upload is streamed to a temporary file, read back as UTF-8 once the
intent is known (undecodable bytes become U+FFFD), and deleted when the
request leaves the ``stage`` block, whatever the outcome.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Protocol

from taskbuster.config import Settings, settings
from taskbuster.errors import PayloadTooLarge, UnsupportedMediaType
from taskbuster.logging import get_logger

logger = get_logger(__name__)

NO_DOCUMENT = "No file provided."
ALLOWED_MEDIA_TYPE = "text/plain"
_CHUNK_SIZE = 64 * 1024


class Upload(Protocol):
    """What the loader needs from an upload; FastAPI's ``UploadFile`` fits."""

    filename: str | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class LocalUpload:
    """A file on disk presented as an upload (used by the CLI)."""

    path: Path
    content_type: str | None = ALLOWED_MEDIA_TYPE
    _handle: BinaryIO | None = field(default=None, init=False, repr=False)

    @property
    def filename(self) -> str:
        return self.path.name

    async def read(self, size: int = -1) -> bytes:
        if self._handle is None:
            self._handle = open(self.path, "rb")
        data = self._handle.read(size)
        if not data:
            await self.close()
        return data

    async def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


@dataclass
class StagedDocument:
    path: Path | None = None
    size: int = 0

    @property
    def provided(self) -> bool:
        return self.path is not None

    async def read_text(self) -> str:
        if self.path is None:
            return NO_DOCUMENT
        return await asyncio.to_thread(
            self.path.read_text, encoding="utf-8", errors="replace"
        )


def media_type_of(upload: Upload) -> str:
    return (upload.content_type or "").split(";", 1)[0].strip().lower()


class DocumentLoader:
    def __init__(
        self,
        max_bytes: int | None = None,
        upload_dir: str | None = None,
        config: Settings | None = None,
    ) -> None:
        config = config or settings
        self.max_bytes = config.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
        self.upload_dir = upload_dir if upload_dir is not None else config.UPLOAD_DIR

    def check_media_type(self, upload: Upload) -> None:
        if media_type_of(upload) != ALLOWED_MEDIA_TYPE:
            logger.warning(
                f"Rejected upload {upload.filename!r} with type {upload.content_type!r}"
            )
            raise UnsupportedMediaType("Only .txt files are allowed!")

    async def _spool(self, upload: Upload, path: Path) -> int:
        total = 0
        with open(path, "wb") as fh:
            while True:
                chunk = await upload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                if total > self.max_bytes:
                    raise PayloadTooLarge(
                        f"File too large. Maximum size is {self.max_bytes} bytes."
                    )
                fh.write(chunk)
        return total

    def release(self, path: Path) -> None:
        try:
            path.unlink()
            logger.info(f"Cleaned up file: {path}")
        except FileNotFoundError:
            logger.warning(f"Temp file already gone: {path}")
        except OSError as exc:
            logger.error(f"Error cleaning up file {path}: {exc!r}")

    @asynccontextmanager
    async def stage(self, upload: Upload | None) -> AsyncIterator[StagedDocument]:
        if upload is None:
            yield StagedDocument()
            return

        self.check_media_type(upload)
        if self.upload_dir:
            Path(self.upload_dir).mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix="taskbuster-", suffix=".txt", dir=self.upload_dir
        )
        os.close(fd)
        path = Path(name)
        try:
            size = await self._spool(upload, path)
            logger.debug(f"Staged {upload.filename!r} ({size} bytes) at {path}")
            yield StagedDocument(path=path, size=size)
        finally:
            self.release(path)
