"""
Image uploads for the structured editor.

Files in one batch are handled one after another. Each file is validated,
uploaded to blob storage under `<author_id>/<token><ext>` and inserted as an
image node at the session's cursor. A file that fails is reported and the
rest of the batch still runs.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import UploadFile

from core import config, errors, storage
from editor.session import EditorMode, EditorSession

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".avif"}


@dataclass(frozen=True)
class UploadedImage:
    filename: str
    key: str
    url: str
    size_bytes: int


@dataclass(frozen=True)
class UploadFailure:
    filename: str
    error: str


@dataclass
class UploadReport:
    inserted: list[UploadedImage] = field(default_factory=list)
    failures: list[UploadFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _file_ext(filename: str) -> str:
    return Path(filename).suffix.lower()


def validate_upload(file: UploadFile) -> str:
    """
    Return the normalized extension if this upload is an accepted image.

    The filename is trusted over `content_type`, which browsers often get wrong.
    """
    if not file.filename:
        raise errors.ValidationError("Missing filename.")

    ext = _file_ext(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise errors.ValidationError(
            f"Unsupported file type '{ext}'. Allowed: {sorted(ALLOWED_EXTENSIONS)}",
        )
    return ext


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise errors.ValidationError(f"File too large. Max is {max_bytes} bytes.")

    if not buf:
        raise errors.ValidationError("File is empty.")
    return bytes(buf)


def object_key(author_id: str, ext: str) -> str:
    return f"{author_id}/{secrets.token_hex(8)}{ext}"


async def _upload_one(session: EditorSession, file: UploadFile, author_id: str, max_bytes: int) -> UploadedImage:
    ext = validate_upload(file)
    data = await read_upload_bytes(file, max_bytes=max_bytes)
    key = object_key(author_id, ext)
    await storage.put_object(key, data, content_type=file.content_type)
    url = storage.public_url(key)
    session.insert_image(url, alt=Path(file.filename or "").stem or None)
    return UploadedImage(filename=file.filename or "", key=key, url=url, size_bytes=len(data))


async def upload_and_insert(session: EditorSession, files: list[UploadFile], author_id: str | None) -> UploadReport:
    """
    Upload `files` in order and insert each one into the structured document.

    Raises before touching storage when there is no author or the session is
    not showing the structured view.
    """
    if not author_id:
        raise errors.AuthorizationError("Sign in as an author to upload images.")
    if session.mode != EditorMode.STRUCTURED:
        raise errors.ValidationError("Images can only be inserted in the structured view.")

    max_bytes = config.max_upload_bytes()
    report = UploadReport()
    for file in files:
        try:
            uploaded = await _upload_one(session, file, author_id, max_bytes)
        except (errors.InkwellError, storage.StorageError) as exc:
            message = exc.message if isinstance(exc, errors.InkwellError) else str(exc)
            logger.warning("image_upload_failed session_id=%s filename=%s error=%s", session.id, file.filename, message)
            report.failures.append(UploadFailure(filename=file.filename or "", error=message))
            continue
        logger.info("image_uploaded session_id=%s key=%s size_bytes=%s", session.id, uploaded.key, uploaded.size_bytes)
        report.inserted.append(uploaded)
    return report
