"""
Dependency wiring for the FastAPI app.

Store and storage clients are built once per application by ``create_app``
and kept on ``app.state``; request handlers receive them through the
``get_*`` dependencies below and pass them explicitly to the service layer.
"""

from __future__ import annotations

import logging

from fastapi import Request

from harvesters_hub.config import Settings
from harvesters_hub.db import DbClient, InMemoryDbClient, PostgresDbClient
from harvesters_hub.storage import InMemoryStorageClient, S3StorageClient, StorageClient

logger = logging.getLogger(__name__)


def build_db_client(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory record store")
        return InMemoryDbClient()
    return PostgresDbClient(settings.database_url)


def build_storage_client(settings: Settings) -> StorageClient:
    if settings.use_in_memory_backends or not settings.asset_bucket:
        logger.info("Using in-memory asset storage")
        return InMemoryStorageClient()
    return S3StorageClient(
        bucket=settings.asset_bucket,
        region=settings.asset_region or "",
        endpoint=settings.asset_endpoint or "",
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
        public_base_url=settings.asset_public_base_url,
    )


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db_client(request: Request) -> DbClient:
    return request.app.state.db


def get_storage_client(request: Request) -> StorageClient:
    return request.app.state.storage
