# backend/csystem/storage.py

import logging
import os
import uuid
from typing import BinaryIO, Optional, Tuple

from csystem import config
from csystem.exceptions import ValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024


def _safe_extension(filename: str) -> str:
    _, ext = os.path.splitext(filename or "")
    return ext.lower()[:10]


def save_upload(
    source: BinaryIO,
    filename: str,
    folder: str = "documents",
    max_bytes: Optional[int] = None,
) -> Tuple[str, int]:
    """Copy an uploaded stream under UPLOAD_DIR. Returns (file_url, size in bytes).

    Copying stops as soon as ``max_bytes`` is exceeded; the partial file is
    removed and a ValidationError is raised.
    """
    target_dir = os.path.join(config.UPLOAD_DIR, folder)
    os.makedirs(target_dir, exist_ok=True)

    stored_name = f"{uuid.uuid4().hex}{_safe_extension(filename)}"
    path = os.path.join(target_dir, stored_name)
    size = 0
    with open(path, "wb") as out:
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if max_bytes is not None and size > max_bytes:
                break
            out.write(chunk)

    if max_bytes is not None and size > max_bytes:
        os.remove(path)
        logger.warning(f"Rejected upload {filename!r}: larger than {max_bytes} bytes")
        raise ValidationError(f"File exceeds the {max_bytes} byte limit", field="file")

    logger.info(f"Stored upload {filename!r} as {path} ({size} bytes)")
    return f"{URL_PREFIX}/{folder}/{stored_name}", size


def path_for_url(file_url: str) -> str:
    relative = file_url[len(URL_PREFIX):].lstrip("/") if file_url.startswith(URL_PREFIX) else file_url
    return os.path.join(config.UPLOAD_DIR, relative)


def delete_upload(file_url: str) -> bool:
    path = path_for_url(file_url)
    if not os.path.isfile(path):
        logger.warning(f"Stored file for {file_url} is already gone")
        return False
    os.remove(path)
    logger.info(f"Deleted stored file {path}")
    return True
