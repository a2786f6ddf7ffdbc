"""
Registration and login for organizational units, super admins and members.

Display names are stored whitespace-collapsed with their case preserved; the
lowercased copy (``normalized_name``) is the lookup and uniqueness key. Logins
accept either an email or a display name and probe each collection in
``LOGIN_CASCADE`` order, returning the first match.

Passwords are stored and compared as plaintext. They are never included in
responses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from harvesters_hub.db import DbClient, MemberRecord, UnitRecord
from harvesters_hub.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from harvesters_hub.identity import LOGIN_CASCADE, Role, normalize_name
from harvesters_hub.schemas import (
    CampusRegistration,
    CellRegistration,
    CommunityRegistration,
    DistrictRegistration,
    MemberRegistration,
    RequiredFieldsModel,
    SuperAdminRegistration,
)
from harvesters_hub.storage import IncomingFile, StorageClient

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    role: Role
    record: UnitRecord

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def display_name(self) -> str:
        return self.record.display_name

    def as_user(self) -> dict:
        return {
            "id": self.record.id,
            "name": self.record.display_name or self.record.email,
            "email": self.record.email,
            "logo": self.record.logo_url or "",
        }


def require_fields(payload: RequiredFieldsModel) -> None:
    missing = payload.missing_fields()
    if missing:
        raise ValidationError(f"All fields are required (missing: {', '.join(missing)})")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _require_parent(db: DbClient, role: Role, unit_id: str) -> UnitRecord:
    parent = db.get_unit(role, unit_id)
    if not parent:
        raise ValidationError(f"Invalid {role.value} ID")
    return parent


def _store_logo(
    storage: StorageClient, logo: Optional[IncomingFile], folder: str
) -> str:
    if logo is None or not logo.data:
        return ""
    return storage.upload_bytes(
        logo.data,
        folder=folder,
        filename=logo.filename,
        content_type=logo.content_type,
    )


def _register_unit(
    db: DbClient,
    storage: StorageClient,
    record: UnitRecord,
    logo: Optional[IncomingFile],
    folder: str,
) -> UnitRecord:
    existing = db.find_unit(
        record.role, email=record.email, normalized_name=record.normalized_name
    )
    if existing:
        raise ConflictError(f"{record.role.label} already exists")
    # The logo is only uploaded once the record is known to be valid.
    record.logo_url = _store_logo(storage, logo, folder)
    created = db.create_unit(record)
    logger.info("Registered %s %s (%s)", record.role.value, created.id, created.display_name)
    return created


def register_campus(
    db: DbClient,
    storage: StorageClient,
    payload: CampusRegistration,
    logo: Optional[IncomingFile] = None,
    *,
    folder: str,
) -> UnitRecord:
    require_fields(payload)
    record = UnitRecord(
        role=Role.CAMPUS,
        display_name=payload.name,
        password=payload.password,
        email=_clean(payload.email),
        address=_clean(payload.address),
    )
    return _register_unit(db, storage, record, logo, folder)


def register_district(
    db: DbClient,
    storage: StorageClient,
    payload: DistrictRegistration,
    logo: Optional[IncomingFile] = None,
    *,
    folder: str,
) -> UnitRecord:
    require_fields(payload)
    campus = _require_parent(db, Role.CAMPUS, payload.campus.strip())
    record = UnitRecord(
        role=Role.DISTRICT,
        display_name=payload.name,
        password=payload.password,
        email=_clean(payload.email),
        campus_id=campus.id,
    )
    return _register_unit(db, storage, record, logo, folder)


def register_community(
    db: DbClient,
    storage: StorageClient,
    payload: CommunityRegistration,
    logo: Optional[IncomingFile] = None,
    *,
    folder: str,
) -> UnitRecord:
    require_fields(payload)
    district = _require_parent(db, Role.DISTRICT, payload.district.strip())
    record = UnitRecord(
        role=Role.COMMUNITY,
        display_name=payload.name,
        password=payload.password,
        leader=_clean(payload.leader),
        phone=_clean(payload.leaderPhone),
        campus_id=district.campus_id,
        district_id=district.id,
    )
    return _register_unit(db, storage, record, logo, folder)


def register_cell(
    db: DbClient,
    storage: StorageClient,
    payload: CellRegistration,
    logo: Optional[IncomingFile] = None,
    *,
    folder: str,
) -> UnitRecord:
    require_fields(payload)
    campus = _require_parent(db, Role.CAMPUS, payload.campus.strip())
    district = _require_parent(db, Role.DISTRICT, payload.district.strip())
    community = _require_parent(db, Role.COMMUNITY, payload.community.strip())
    record = UnitRecord(
        role=Role.CELL,
        display_name=payload.name,
        password=payload.password,
        email=_clean(payload.email),
        address=_clean(payload.address),
        leader=_clean(payload.leader),
        phone=_clean(payload.phone),
        campus_id=campus.id,
        district_id=district.id,
        community_id=community.id,
    )
    return _register_unit(db, storage, record, logo, folder)


def register_super_admin(db: DbClient, payload: SuperAdminRegistration) -> UnitRecord:
    require_fields(payload)
    record = UnitRecord(
        role=Role.SUPER_ADMIN,
        display_name=payload.name,
        password=payload.password,
    )
    if db.find_unit(Role.SUPER_ADMIN, normalized_name=record.normalized_name):
        raise ConflictError("Super Admin already exists")
    created = db.create_unit(record)
    logger.info("Registered super admin %s", created.id)
    return created


def find_identity(db: DbClient, role: Role, identifier: str) -> Optional[UnitRecord]:
    """Match ``identifier`` against the email or normalized name of one collection."""
    return db.find_unit(
        role,
        email=identifier.strip(),
        normalized_name=normalize_name(identifier),
    )


def resolve_login(
    db: DbClient,
    identifier: Optional[str],
    password: Optional[str],
    roles: Iterable[Role] = LOGIN_CASCADE,
    *,
    not_found_message: str = "User not found",
) -> LoginResult:
    """
    Resolve ``identifier`` against each collection in ``roles`` order.

    The first collection with a match wins; there is no check for the same
    identifier existing in a later collection.

    Raises:
        ValidationError: identifier or password is blank.
        NotFoundError: no collection matches.
        InvalidCredentialsError: the matched record has a different password.
    """
    if not identifier or not identifier.strip() or not password:
        raise ValidationError("All fields are required")

    match: Optional[LoginResult] = None
    for role in roles:
        record = find_identity(db, role, identifier)
        if record:
            match = LoginResult(role=role, record=record)
            break

    if match is None:
        raise NotFoundError(not_found_message)
    if match.record.password != password:
        logger.info("Rejected login for %s %s", match.role.value, match.id)
        raise InvalidCredentialsError("Invalid credentials")
    return match


def login_by_name(
    db: DbClient, role: Role, name: Optional[str], password: Optional[str]
) -> UnitRecord:
    """Name-only login used by the legacy community and super admin endpoints.

    Unknown names and wrong passwords are both reported as invalid credentials.
    """
    if not name or not name.strip() or not password:
        raise ValidationError("All fields are required")
    record = db.find_unit(role, normalized_name=normalize_name(name))
    if not record or record.password != password:
        raise InvalidCredentialsError("Invalid credentials")
    return record


def _ref(record: Optional[UnitRecord], *, with_email: bool = False) -> Optional[dict]:
    if record is None:
        return None
    ref = {"id": record.id, "name": record.display_name}
    if with_email:
        ref["email"] = record.email
    return ref


def _parent(db: DbClient, role: Role, unit_id: Optional[str]) -> Optional[UnitRecord]:
    return db.get_unit(role, unit_id) if unit_id else None


def present_unit(db: DbClient, record: UnitRecord) -> dict:
    """Public dict for ``record`` with parent references expanded."""
    data = record.as_dict()
    if record.role == Role.DISTRICT:
        data["campus"] = _ref(
            _parent(db, Role.CAMPUS, record.campus_id), with_email=True
        )
    elif record.role == Role.COMMUNITY:
        data["district"] = _ref(_parent(db, Role.DISTRICT, record.district_id))
    elif record.role == Role.CELL:
        data["campus"] = _ref(_parent(db, Role.CAMPUS, record.campus_id))
        data["district"] = _ref(_parent(db, Role.DISTRICT, record.district_id))
        data["community"] = _ref(_parent(db, Role.COMMUNITY, record.community_id))
    return data


def present_cell_login(db: DbClient, record: UnitRecord) -> dict:
    """Cell summary for a login response, parents reduced to their names."""

    def name_of(role: Role, unit_id: Optional[str]) -> Optional[str]:
        parent = _parent(db, role, unit_id)
        return parent.display_name if parent else None

    return {
        "id": record.id,
        "name": record.display_name,
        "address": record.address,
        "leader": record.leader,
        "phone": record.phone,
        "email": record.email,
        "campus": name_of(Role.CAMPUS, record.campus_id),
        "district": name_of(Role.DISTRICT, record.district_id),
        "community": name_of(Role.COMMUNITY, record.community_id),
        "logo": record.logo_url,
    }


def get_unit_or_404(db: DbClient, role: Role, unit_id: str) -> UnitRecord:
    record = db.get_unit(role, unit_id)
    if not record:
        raise NotFoundError(f"{role.label} not found")
    return record


def register_member(db: DbClient, payload: MemberRegistration) -> MemberRecord:
    require_fields(payload)
    email = payload.email.strip()
    if db.find_member_by_email(email):
        raise ConflictError("Email already registered")
    district = _require_parent(db, Role.DISTRICT, payload.district.strip())
    cell = _require_parent(db, Role.CELL, payload.cell.strip())
    record = MemberRecord(
        full_name=" ".join(payload.fullName.split()),
        address=payload.address.strip(),
        phone=payload.phone.strip(),
        email=email,
        district_id=district.id,
        cell_id=cell.id,
    )
    created = db.create_member(record)
    logger.info("Registered member %s in cell %s", created.id, cell.id)
    return created


def list_members(
    db: DbClient, role_id: Optional[str] = None, user_id: Optional[str] = None
) -> list[MemberRecord]:
    """Members visible to the caller. Cell users only see their own cell."""
    if role_id == Role.CELL.value:
        if not user_id or not db.get_unit(Role.CELL, user_id):
            raise ValidationError("Invalid cell ID")
        return db.list_members(cell_id=user_id)
    return db.list_members()


def present_member(db: DbClient, record: MemberRecord) -> dict:
    data = record.as_dict()
    data["district"] = _ref(_parent(db, Role.DISTRICT, record.district_id))
    data["cell"] = _ref(_parent(db, Role.CELL, record.cell_id))
    return data
