"""
HTTP routes for the backend API.

``router`` is mounted under the configured API prefix; ``root_router`` holds
the health probe and the legacy endpoints that clients call without it.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from harvesters_hub import accounts, media
from harvesters_hub.config import Settings
from harvesters_hub.db import DbClient
from harvesters_hub.dependencies import (
    get_app_settings,
    get_db_client,
    get_storage_client,
)
from harvesters_hub.errors import ValidationError
from harvesters_hub.identity import Role
from harvesters_hub.live import fetch_live_feed
from harvesters_hub.schemas import (
    CampusRegistration,
    CellRegistration,
    CommunityRegistration,
    DistrictRegistration,
    HealthResponse,
    LikeRequest,
    LikeResponse,
    LoginRequest,
    MemberRegistration,
    NameLoginRequest,
    SuperAdminRegistration,
    UniversalLoginResponse,
    UploadMetadata,
)
from harvesters_hub.storage import IncomingFile, StorageClient

logger = logging.getLogger(__name__)

router = APIRouter()
root_router = APIRouter()


async def _read_upload(upload: Optional[UploadFile]) -> Optional[IncomingFile]:
    if upload is None or not upload.filename:
        return None
    return IncomingFile(
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        data=await upload.read(),
    )


def _unit_login(db: DbClient, role: Role, payload: LoginRequest) -> dict:
    result = accounts.resolve_login(
        db,
        payload.identifier,
        payload.password,
        roles=(role,),
        not_found_message=f"{role.label} not found",
    )
    return {
        "success": True,
        "message": "Login successful",
        role.value: accounts.present_unit(db, result.record),
    }


def _unit_detail(db: DbClient, role: Role, unit_id: str) -> dict:
    record = accounts.get_unit_or_404(db, role, unit_id)
    return {"success": True, "data": accounts.present_unit(db, record)}


def _unit_list(db: DbClient, role: Role, **filters) -> list[dict]:
    return [
        accounts.present_unit(db, record) for record in db.list_units(role, **filters)
    ]


# ---------------------------------------------------------------------------
# Health and legacy endpoints
# ---------------------------------------------------------------------------


@root_router.get("/health", response_model=HealthResponse)
def health(request: Request):
    return HealthResponse(ok=True, uptime=time.monotonic() - request.app.state.started_at)


@root_router.post("/login")
def community_login_by_name(
    payload: NameLoginRequest, db: DbClient = Depends(get_db_client)
):
    record = accounts.login_by_name(db, Role.COMMUNITY, payload.name, payload.password)
    return {
        "success": True,
        "message": "Login successful",
        "community": record.as_dict(),
    }


@root_router.post("/superadmin/register", status_code=201)
def register_super_admin(
    payload: SuperAdminRegistration, db: DbClient = Depends(get_db_client)
):
    record = accounts.register_super_admin(db, payload)
    return {
        "success": True,
        "message": "Super Admin registered successfully",
        "data": {"id": record.id, "name": record.display_name},
    }


@root_router.post("/superAdmin/login")
def super_admin_login(payload: NameLoginRequest, db: DbClient = Depends(get_db_client)):
    record = accounts.login_by_name(db, Role.SUPER_ADMIN, payload.name, payload.password)
    return {
        "success": True,
        "message": "Login successful",
        "data": {"id": record.id, "name": record.display_name},
    }


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------


@router.post("/upload")
async def upload_files(
    files: Optional[list[UploadFile]] = File(None),
    comment: Optional[str] = Form(None),
    uploaderId: Optional[str] = Form(None),
    uploaderRole: Optional[str] = Form(None),
    uploaderName: Optional[str] = Form(None),
    uploaderLogo: Optional[str] = Form(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
):
    metadata = UploadMetadata(
        comment=comment,
        uploaderId=uploaderId,
        uploaderRole=uploaderRole,
        uploaderName=uploaderName,
        uploaderLogo=uploaderLogo,
    )
    incoming = []
    for upload in files or []:
        read = await _read_upload(upload)
        if read is not None:
            incoming.append(read)
    records = media.upload_media(
        db, storage, incoming, metadata, folder=settings.asset_folder
    )
    return {
        "success": True,
        "message": "Files uploaded successfully",
        "files": [record.as_dict() for record in records],
    }


@router.get("/uploads")
@router.get("/images")
def list_uploads(db: DbClient = Depends(get_db_client)):
    return {
        "success": True,
        "data": [record.as_dict() for record in db.list_media_posts()],
    }


@router.get("/uploads/{post_id}")
def get_upload(post_id: str, db: DbClient = Depends(get_db_client)):
    return {"success": True, "data": media.get_post(db, post_id).as_dict()}


@router.post("/uploads/{post_id}/like", response_model=LikeResponse)
def like_upload(
    post_id: str,
    payload: Optional[LikeRequest] = None,
    db: DbClient = Depends(get_db_client),
):
    likes, liked = media.toggle_like(db, post_id, payload.device_id if payload else None)
    return LikeResponse(likes=likes, liked=liked)


# ---------------------------------------------------------------------------
# Campus
# ---------------------------------------------------------------------------


@router.post("/campus/register", status_code=201)
async def register_campus(
    name: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
):
    payload = CampusRegistration(name=name, address=address, email=email, password=password)
    record = accounts.register_campus(
        db, storage, payload, await _read_upload(logo), folder=settings.asset_folder
    )
    return {
        "success": True,
        "message": "Campus registered successfully",
        "campus": accounts.present_unit(db, record),
    }


@router.post("/campus/login")
def campus_login(payload: LoginRequest, db: DbClient = Depends(get_db_client)):
    return _unit_login(db, Role.CAMPUS, payload)


@router.get("/campus")
def list_campuses(db: DbClient = Depends(get_db_client)):
    return {"success": True, "data": _unit_list(db, Role.CAMPUS)}


@router.get("/campus/{unit_id}")
def get_campus(unit_id: str, db: DbClient = Depends(get_db_client)):
    return _unit_detail(db, Role.CAMPUS, unit_id)


# ---------------------------------------------------------------------------
# District
# ---------------------------------------------------------------------------


@router.post("/district/register", status_code=201)
async def register_district(
    name: Optional[str] = Form(None),
    campus: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
):
    payload = DistrictRegistration(name=name, campus=campus, email=email, password=password)
    record = accounts.register_district(
        db, storage, payload, await _read_upload(logo), folder=settings.asset_folder
    )
    return {
        "success": True,
        "message": "District registered successfully",
        "district": accounts.present_unit(db, record),
    }


@router.post("/district/login")
def district_login(payload: LoginRequest, db: DbClient = Depends(get_db_client)):
    return _unit_login(db, Role.DISTRICT, payload)


@router.get("/district")
def list_districts(db: DbClient = Depends(get_db_client)):
    return {"success": True, "data": _unit_list(db, Role.DISTRICT)}


@router.get("/district/{unit_id}")
def get_district(unit_id: str, db: DbClient = Depends(get_db_client)):
    return _unit_detail(db, Role.DISTRICT, unit_id)


@router.get("/districts")
def list_districts_by_campus(
    campus: Optional[str] = Query(None), db: DbClient = Depends(get_db_client)
):
    return {"success": True, "data": _unit_list(db, Role.DISTRICT, campus_id=campus)}


# ---------------------------------------------------------------------------
# Community
# ---------------------------------------------------------------------------


@router.post("/community/register", status_code=201)
@router.post("/communities", status_code=201)
async def register_community(
    name: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    leader: Optional[str] = Form(None),
    leaderPhone: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
):
    payload = CommunityRegistration(
        name=name,
        district=district,
        leader=leader,
        leaderPhone=leaderPhone,
        password=password,
    )
    record = accounts.register_community(
        db, storage, payload, await _read_upload(logo), folder=settings.asset_folder
    )
    return {
        "success": True,
        "message": "Community registered successfully",
        "community": accounts.present_unit(db, record),
    }


@router.post("/community/login")
def community_login(payload: LoginRequest, db: DbClient = Depends(get_db_client)):
    return _unit_login(db, Role.COMMUNITY, payload)


@router.get("/community/{unit_id}")
def get_community(unit_id: str, db: DbClient = Depends(get_db_client)):
    return _unit_detail(db, Role.COMMUNITY, unit_id)


@router.get("/get/communities")
def list_all_communities(db: DbClient = Depends(get_db_client)):
    return {"success": True, "data": _unit_list(db, Role.COMMUNITY)}


@router.get("/communities")
def list_communities_by_district(
    district: Optional[str] = Query(None), db: DbClient = Depends(get_db_client)
):
    if not district:
        raise ValidationError("District ID required")
    return {
        "success": True,
        "data": _unit_list(db, Role.COMMUNITY, district_id=district),
    }


# ---------------------------------------------------------------------------
# Cell
# ---------------------------------------------------------------------------


@router.post("/cell/register", status_code=201)
async def register_cell(
    name: Optional[str] = Form(None),
    campus: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    community: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    leader: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
):
    payload = CellRegistration(
        name=name,
        campus=campus,
        district=district,
        community=community,
        address=address,
        leader=leader,
        phone=phone,
        email=email,
        password=password,
    )
    record = accounts.register_cell(
        db, storage, payload, await _read_upload(logo), folder=settings.asset_folder
    )
    return {
        "success": True,
        "message": "Cell registered successfully",
        "data": accounts.present_unit(db, record),
    }


@router.post("/cell/login")
def cell_login(payload: LoginRequest, db: DbClient = Depends(get_db_client)):
    result = accounts.resolve_login(
        db,
        payload.identifier,
        payload.password,
        roles=(Role.CELL,),
        not_found_message="Cell not found",
    )
    return {
        "success": True,
        "message": "Login successful",
        "cell": accounts.present_cell_login(db, result.record),
    }


@router.get("/cell")
def list_cells(db: DbClient = Depends(get_db_client)):
    return {"success": True, "data": _unit_list(db, Role.CELL)}


@router.get("/cell/{unit_id}")
def get_cell(unit_id: str, db: DbClient = Depends(get_db_client)):
    return _unit_detail(db, Role.CELL, unit_id)


@router.get("/cells/by-district/{district_id}")
def list_cells_by_district(district_id: str, db: DbClient = Depends(get_db_client)):
    return _unit_list(db, Role.CELL, district_id=district_id)


# ---------------------------------------------------------------------------
# Universal login
# ---------------------------------------------------------------------------


@router.post("/universal-login", response_model=UniversalLoginResponse)
@router.post("/universal-login2", response_model=UniversalLoginResponse)
def universal_login(payload: LoginRequest, db: DbClient = Depends(get_db_client)):
    result = accounts.resolve_login(db, payload.identifier, payload.password)
    return UniversalLoginResponse(role=result.role.value, user=result.as_user())


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.post("/members/register", status_code=201)
def register_member(payload: MemberRegistration, db: DbClient = Depends(get_db_client)):
    record = accounts.register_member(db, payload)
    return {
        "success": True,
        "message": "Member registered successfully",
        "member": record.as_dict(),
    }


@router.get("/members")
def list_members(
    roleId: Optional[str] = Query(None),
    userId: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
):
    return [
        accounts.present_member(db, record)
        for record in accounts.list_members(db, roleId, userId)
    ]


# ---------------------------------------------------------------------------
# Live feed
# ---------------------------------------------------------------------------


@router.get("/live")
def live_feed(settings: Settings = Depends(get_app_settings)):
    return fetch_live_feed(
        settings.youtube_api_key,
        settings.channel_id,
        timeout=settings.live_request_timeout,
    )
