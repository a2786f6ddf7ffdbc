"""
FastAPI application entry point.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from harvesters_hub.config import Settings, get_settings
from harvesters_hub.db import DbClient
from harvesters_hub.dependencies import build_db_client, build_storage_client
from harvesters_hub.errors import HubError
from harvesters_hub.routes import root_router, router
from harvesters_hub.storage import StorageClient

logger = logging.getLogger(__name__)


def _error_body(message: str) -> dict:
    return {"success": False, "message": message}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HubError)
    async def handle_hub_error(request: Request, exc: HubError):
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=_error_body("Invalid request body"))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled server error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body("Internal Server Error"))


def create_app(
    settings: Optional[Settings] = None,
    *,
    db: Optional[DbClient] = None,
    storage: Optional[StorageClient] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Harvesters Hub API", version="0.1.0")

    app.state.settings = settings
    app.state.db = db if db is not None else build_db_client(settings)
    app.state.storage = storage if storage is not None else build_storage_client(settings)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_error_handlers(app)
    app.include_router(root_router)
    app.include_router(router, prefix=settings.api_prefix)
    return app
