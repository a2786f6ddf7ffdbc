"""
Media posts: multi-file uploads with a shared caption, and per-device likes.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from harvesters_hub.db import DbClient, MediaKind, MediaRecord
from harvesters_hub.errors import NotFoundError, ValidationError
from harvesters_hub.identity import parse_role
from harvesters_hub.schemas import UploadMetadata
from harvesters_hub.storage import IncomingFile, StorageClient

logger = logging.getLogger(__name__)


def classify_media_kind(content_type: Optional[str]) -> MediaKind:
    if (content_type or "").lower().startswith("video"):
        return MediaKind.VIDEO
    return MediaKind.IMAGE


def upload_media(
    db: DbClient,
    storage: StorageClient,
    files: Sequence[IncomingFile],
    metadata: UploadMetadata,
    *,
    folder: str,
) -> list[MediaRecord]:
    """
    Store each file on the asset host and create one post per file.

    Files are processed in order. If a later file fails, posts already
    created for earlier files are kept and nothing is rolled back.
    """
    if metadata.missing_fields():
        raise ValidationError("Uploader info missing")
    role = parse_role(metadata.uploaderRole)
    if role is None:
        raise ValidationError(f"Unknown uploader role: {metadata.uploaderRole}")
    if not files:
        raise ValidationError("No files uploaded")

    caption = metadata.comment or ""
    created: list[MediaRecord] = []
    for incoming in files:
        kind = classify_media_kind(incoming.content_type)
        url = storage.upload_bytes(
            incoming.data,
            folder=folder,
            filename=incoming.filename,
            content_type=incoming.content_type,
        )
        record = MediaRecord(
            url=url,
            media_kind=kind,
            caption=caption,
            uploader_id=metadata.uploaderId.strip(),
            uploader_role=role,
            uploader_name=metadata.uploaderName.strip(),
            uploader_logo=metadata.uploaderLogo.strip(),
        )
        created.append(db.create_media_post(record))

    logger.info(
        "Stored %d upload(s) for %s %s", len(created), role.value, metadata.uploaderId
    )
    return created


def get_post(db: DbClient, post_id: str) -> MediaRecord:
    record = db.get_media_post(post_id)
    if not record:
        raise NotFoundError("Post not found")
    return record


def toggle_like(db: DbClient, post_id: str, device_id: Optional[str]) -> tuple[int, bool]:
    """
    Like the post for ``device_id``, or unlike it if the device already did.

    Returns the new like count and whether the device now likes the post.
    """
    if not device_id or not device_id.strip():
        raise ValidationError("deviceId required")
    result = db.toggle_like(post_id, device_id.strip())
    if result is None:
        raise NotFoundError("Post not found")
    return result
