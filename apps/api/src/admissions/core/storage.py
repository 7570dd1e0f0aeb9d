"""
Upload Storage

Writes uploaded files to local disk under the configured upload directory.
Files are written synchronously before the request handler continues and
are served back through the `/uploads` static mount.
"""

import logging
import os
import random
import shutil
import time
from pathlib import Path

from fastapi import UploadFile

from admissions.core.config import settings

logger = logging.getLogger(__name__)


def build_stored_filename(original_name: str | None) -> str:
    """
    Build a collision-resistant file name: `<millis>-<random>-<basename>`.

    Directory components in the client-supplied name are discarded.
    """
    base = Path((original_name or "upload").replace("\\", "/")).name or "upload"
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique_suffix}-{base}"


def save_upload(file: UploadFile, subdir: str | None = None) -> str:
    """
    Persist an uploaded file and return its forward-slash relative path.

    Args:
        file: The uploaded file
        subdir: Optional folder under the upload directory (e.g. "profile")

    Returns:
        Path such as "uploads/1700000000000-123-resume.pdf"
    """
    folder = os.path.join(settings.upload_dir, subdir) if subdir else settings.upload_dir
    os.makedirs(folder, exist_ok=True)

    path = os.path.join(folder, build_stored_filename(file.filename))
    with open(path, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    stored = path.replace("\\", "/")
    logger.debug(f"Stored upload {file.filename!r} at {stored}")
    return stored


def remove_upload(stored_path: str) -> bool:
    """
    Delete a previously stored upload. A missing file is not an error.

    Returns:
        True if a file was removed
    """
    try:
        os.remove(stored_path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Could not remove upload {stored_path}: {e}")
        return False

    logger.info(f"Removed orphaned upload {stored_path}")
    return True
