"""
Task attachment intake

One optional file per task creation request. Any content type is accepted;
size is capped at config.MAX_UPLOAD_BYTES.
"""

import logging
import os
import secrets
import time
from typing import Optional
from fastapi import UploadFile
from coursehub import config
from coursehub.errors import ValidationError

logger = logging.getLogger(__name__)


def format_file_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size // (1024 * 1024)}MB"
    if size >= 1024:
        return f"{size // 1024}KB"
    return f"{size}B"


def unique_filename(original_name: str) -> str:
    """<epoch ms>-<random>-<original basename>"""
    safe_name = os.path.basename(original_name.replace("\\", "/")) or "upload"
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{unique_suffix}-{safe_name}"


async def store_upload(file: Optional[UploadFile]) -> Optional[dict]:
    """
    Persist the uploaded file and return its metadata.

    Returns None when the request carried no file.

    Raises:
        ValidationError: file larger than MAX_UPLOAD_BYTES
    """
    if file is None or not file.filename:
        return None

    # Read one byte past the cap so oversize files are detected without
    # buffering them whole
    content = await file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise ValidationError(f"File too large. Max size: {format_file_size(config.MAX_UPLOAD_BYTES)}")

    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    filename = unique_filename(file.filename)
    storage_path = os.path.join(config.UPLOAD_DIR, filename)

    with open(storage_path, "wb") as f:
        f.write(content)

    logger.info("Stored upload %s (%d bytes) as %s", file.filename, len(content), storage_path)

    return {
        "filename": filename,
        "original_name": file.filename,
        "storage_path": storage_path,
        "mime_type": file.content_type,
        "size": len(content)
    }


def discard_upload(file_meta: Optional[dict]):
    """Remove a stored upload whose task was never recorded"""
    if not file_meta:
        return
    try:
        os.remove(file_meta["storage_path"])
        logger.info("Discarded orphaned upload %s", file_meta["storage_path"])
    except FileNotFoundError:
        pass
