"""
Asset storage abstraction for an S3-compatible host and in-memory testing.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from harvesters_hub.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    """A file received in a multipart request, already read into memory."""

    filename: str
    content_type: str
    data: bytes


class StorageClient(Protocol):
    """Defines the operations the API needs from the asset host."""

    def upload_bytes(
        self, data: bytes, *, folder: str, filename: str, content_type: str
    ) -> str:
        """Store ``data`` and return its public URL."""
        ...


def build_object_key(folder: str, filename: str) -> str:
    """Unique object key under ``folder`` that keeps the file extension."""
    _, ext = os.path.splitext(filename or "")
    return f"{folder.strip('/')}/{uuid.uuid4().hex}{ext.lower()}"


@dataclass
class InMemoryStorageClient:
    """Test double for asset uploads."""

    base_url: str = "https://example.test/assets"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def upload_bytes(
        self, data: bytes, *, folder: str, filename: str, content_type: str
    ) -> str:
        key = build_object_key(folder, filename)
        self.stored_objects[key] = (data, content_type)
        return f"{self.base_url}/{key}"


@dataclass
class S3StorageClient:
    """
    S3-compatible asset storage. Objects are written with a public-read ACL
    so the returned URL can be embedded directly by clients.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: Optional[str] = None

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def upload_bytes(
        self, data: bytes, *, folder: str, filename: str, content_type: str
    ) -> str:
        key = build_object_key(folder, filename)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Asset upload failed for %s", key)
            raise UpstreamError("Asset upload failed") from exc
        return self.public_url(key)
