"""Storage of supporting documents attached to applications.

Files live under UPLOAD_DIR/<user_id>/ and are referenced from the database
by their public path `/uploads/<user_id>/<filename>`, which is where the
upload directory is mounted as static files.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import time
import uuid
from typing import Iterable, List, Optional

from fastapi import UploadFile

from scholarship import settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


# Stored files get their extension from the accepted content type, so
# StaticFiles never serves them as anything else
_EXTENSIONS = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


class UploadRejected(ValueError):
    """Uploaded file violates the size or content-type rules."""


def extension_for(content_type: str) -> str:
    return _EXTENSIONS.get(content_type) or mimetypes.guess_extension(content_type) or ".bin"


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    if not filename:
        raise UploadRejected("Filename is required")
    if content_type not in settings.ALLOWED_UPLOAD_TYPES:
        raise UploadRejected(
            f"Unsupported file type '{content_type}' for {filename}; "
            f"allowed: {', '.join(settings.ALLOWED_UPLOAD_TYPES)}"
        )
    if size > settings.MAX_UPLOAD_BYTES:
        raise UploadRejected(
            f"File {filename} is {size} bytes; the limit is {settings.MAX_UPLOAD_BYTES} bytes"
        )


def public_path_to_disk(public_path: str) -> Optional[str]:
    """Map `/uploads/...` back to a file under UPLOAD_DIR (None if outside it)."""
    if not public_path.startswith(PUBLIC_PREFIX + "/"):
        return None
    relative = public_path[len(PUBLIC_PREFIX) + 1:]
    base = os.path.abspath(settings.UPLOAD_DIR)
    disk_path = os.path.abspath(os.path.join(base, relative))
    if os.path.commonpath([base, disk_path]) != base:
        return None
    return disk_path


async def save_uploads(user_id: int, files: Iterable[UploadFile]) -> List[str]:
    """Validate and store uploaded files; return their public paths.

    All files are validated as they are read. At most MAX_UPLOAD_BYTES + 1
    bytes of a file are held in memory. The stored name and extension come
    from the server, never from the client's filename. If any file is
    rejected, the ones already written for this request are removed before
    re-raising.
    """
    user_dir = os.path.join(settings.UPLOAD_DIR, str(user_id))
    saved: List[str] = []
    try:
        for index, upload in enumerate(files):
            if upload.size is not None:
                validate_upload(upload.filename, upload.content_type, upload.size)
            content = await upload.read(settings.MAX_UPLOAD_BYTES + 1)
            validate_upload(upload.filename, upload.content_type, len(content))

            os.makedirs(user_dir, exist_ok=True)
            ext = extension_for(upload.content_type)
            filename = f"{int(time.time() * 1000)}_{index}_{uuid.uuid4().hex}{ext}"
            with open(os.path.join(user_dir, filename), "wb") as fh:
                fh.write(content)
            saved.append(f"{PUBLIC_PREFIX}/{user_id}/{filename}")
            logger.info(f"uploads: stored {upload.filename} for user_id={user_id} as {filename}")
    except UploadRejected:
        remove_uploaded_files(saved)
        raise
    return saved


def remove_uploaded_files(public_paths: Iterable[str]) -> int:
    """Delete stored files by public path. Missing files are skipped."""
    removed = 0
    for public_path in public_paths:
        disk_path = public_path_to_disk(public_path) if isinstance(public_path, str) else None
        if not disk_path:
            continue
        try:
            os.remove(disk_path)
            removed += 1
        except FileNotFoundError:
            logger.warning(f"uploads: {public_path} already missing on disk")
    return removed
