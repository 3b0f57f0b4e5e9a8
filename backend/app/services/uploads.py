"""Module: uploads."""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".webp"}

# Sub-directories of the content root, one per owning record type.
PETS = "pets"
PROFILES = "profiles"
BLOGS = "blogs"
COMMUNITIES = "communities"
POSTS = "posts"


def content_root() -> Path:
    return Path(settings.upload_dir)


def _target_dir(kind: str) -> Path:
    path = content_root() / kind
    path.mkdir(parents=True, exist_ok=True)
    return path


def _unique_name(prefix: str, suffix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


async def save_image(photo: UploadFile | None, kind: str, prefix: str) -> str | None:
    """Validate an uploaded image and store it; return the stored filename."""
    if not photo or not photo.filename:
        return None

    content_type = (photo.content_type or "").lower()
    suffix = Path(photo.filename).suffix.lower()
    if content_type not in ALLOWED_IMAGE_TYPES or suffix not in ALLOWED_EXTENSIONS:
        raise ValidationError("Validation Error", "Images only (jpeg, jpg, png, webp)")

    data = await photo.read()
    if len(data) > settings.max_upload_bytes:
        raise ValidationError("Validation Error", "Image must be 5MB or smaller")

    filename = _unique_name(prefix, suffix)
    (_target_dir(kind) / filename).write_bytes(data)
    return filename


async def save_images(photos: list[UploadFile] | None, kind: str, prefix: str) -> list[str]:
    # All-or-nothing: files already written are removed if a later one fails.
    saved: list[str] = []
    try:
        for photo in photos or []:
            filename = await save_image(photo, kind, prefix)
            if filename:
                saved.append(filename)
    except Exception:
        delete_images(saved, kind)
        raise
    return saved


def delete_image(filename: str | None, kind: str) -> None:
    if not filename:
        return
    path = content_root() / kind / Path(filename).name
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Stored image already missing: %s", path)


def delete_images(filenames: list[str] | None, kind: str) -> None:
    for filename in filenames or []:
        delete_image(filename, kind)
