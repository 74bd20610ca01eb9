"""
Disk storage for submission archives.

Only ZIP archives are accepted (by extension AND declared MIME type). Files
are stored under the configured upload directory with a generated name; the
original name and size are returned for the submission record.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path

import structlog
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.errors import BadRequestError, NotFoundError

log = structlog.get_logger()

ALLOWED_MIME_TYPES = {"application/zip", "application/x-zip-compressed"}
ALLOWED_EXTENSION = ".zip"
CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredFile:
    path: str
    original_name: str
    size: int


def validate_zip_upload(upload: UploadFile) -> None:
    """Raise BadRequestError unless the upload looks like a ZIP archive."""
    extension = Path(upload.filename or "").suffix.lower()
    if extension != ALLOWED_EXTENSION or upload.content_type not in ALLOWED_MIME_TYPES:
        raise BadRequestError("Only ZIP files are allowed", code="INVALID_FILE_TYPE")


async def save_upload(upload: UploadFile, upload_dir: str, max_bytes: int) -> StoredFile:
    """Validate and write an upload to disk in chunks, enforcing max_bytes."""
    validate_zip_upload(upload)

    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    destination = directory / f"{uuid.uuid4()}{ALLOWED_EXTENSION}"

    size = 0
    out = await run_in_threadpool(destination.open, "wb")
    try:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > max_bytes:
                raise BadRequestError("File size exceeds limit", code="FILE_TOO_LARGE")
            await run_in_threadpool(out.write, chunk)
    except BaseException:
        await run_in_threadpool(out.close)
        destination.unlink(missing_ok=True)
        raise
    await run_in_threadpool(out.close)

    log.info("upload.stored", path=str(destination), size=size)
    return StoredFile(path=str(destination), original_name=upload.filename, size=size)


def discard(stored: StoredFile) -> None:
    """Remove a stored file whose database record was never written."""
    Path(stored.path).unlink(missing_ok=True)


def resolve_stored_path(recorded_path: str, upload_dir: str) -> Path:
    """Locate a stored archive.

    Looks for the recorded file's basename inside the upload directory first
    (the directory may have moved since upload), then the recorded path.
    """
    candidate = Path(upload_dir) / Path(recorded_path).name
    if candidate.is_file():
        return candidate

    fallback = Path(recorded_path)
    if fallback.is_file():
        return fallback

    raise NotFoundError("File not found")
