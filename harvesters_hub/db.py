"""
Record store abstraction for SQL databases and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import JSON, Column, Float, Integer, String, create_engine, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from harvesters_hub.errors import ConflictError, UpstreamError
from harvesters_hub.identity import Role, collapse_whitespace, normalize_name

logger = logging.getLogger(__name__)


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


class DbClient(Protocol):
    """Interface for record store access."""

    def create_unit(self, record: "UnitRecord") -> "UnitRecord":
        ...

    def get_unit(self, role: Role, unit_id: str) -> Optional["UnitRecord"]:
        ...

    def find_unit(
        self,
        role: Role,
        *,
        email: Optional[str] = None,
        normalized_name: Optional[str] = None,
    ) -> Optional["UnitRecord"]:
        ...

    def list_units(
        self,
        role: Role,
        *,
        campus_id: Optional[str] = None,
        district_id: Optional[str] = None,
    ) -> list["UnitRecord"]:
        ...

    def create_member(self, record: "MemberRecord") -> "MemberRecord":
        ...

    def find_member_by_email(self, email: str) -> Optional["MemberRecord"]:
        ...

    def list_members(self, *, cell_id: Optional[str] = None) -> list["MemberRecord"]:
        ...

    def create_media_post(self, record: "MediaRecord") -> "MediaRecord":
        ...

    def get_media_post(self, post_id: str) -> Optional["MediaRecord"]:
        ...

    def list_media_posts(self) -> list["MediaRecord"]:
        ...

    def toggle_like(self, post_id: str, device_id: str) -> Optional[tuple[int, bool]]:
        ...


@dataclass
class UnitRecord:
    """A registered campus, district, community, cell or super admin.

    ``normalized_name`` is always derived from ``display_name`` and cannot be
    passed in.
    """

    role: Role
    display_name: str
    password: str
    email: Optional[str] = None
    logo_url: str = ""
    address: Optional[str] = None
    leader: Optional[str] = None
    phone: Optional[str] = None
    campus_id: Optional[str] = None
    district_id: Optional[str] = None
    community_id: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())
    normalized_name: str = field(init=False)

    def __post_init__(self):
        self.display_name = collapse_whitespace(self.display_name)
        self.normalized_name = normalize_name(self.display_name)

    def as_dict(self) -> dict:
        """Public representation. The password is never included."""
        data = {
            "id": self.id,
            "name": self.display_name,
            "normalizedName": self.normalized_name,
            "role": self.role.value,
        }
        if self.role == Role.CAMPUS:
            data.update(address=self.address, email=self.email)
        elif self.role == Role.DISTRICT:
            data.update(campus=self.campus_id, email=self.email)
        elif self.role == Role.COMMUNITY:
            data.update(
                district=self.district_id,
                leader=self.leader,
                leaderPhone=self.phone,
            )
        elif self.role == Role.CELL:
            data.update(
                campus=self.campus_id,
                district=self.district_id,
                community=self.community_id,
                address=self.address,
                leader=self.leader,
                phone=self.phone,
                email=self.email,
            )
        if self.role != Role.SUPER_ADMIN:
            data["logo"] = self.logo_url
        data["createdAt"] = _iso(self.created_at)
        data["updatedAt"] = _iso(self.updated_at)
        return data


@dataclass
class MemberRecord:
    full_name: str
    address: str
    phone: str
    email: str
    district_id: str
    cell_id: str
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "district": self.district_id,
            "cell": self.cell_id,
            "createdAt": _iso(self.created_at),
        }


@dataclass
class MediaRecord:
    url: str
    media_kind: MediaKind
    caption: str
    uploader_id: str
    uploader_role: Role
    uploader_name: str
    uploader_logo: str
    like_count: int = 0
    liked_by: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "type": self.media_kind.value,
            "comments": self.caption,
            "likes": self.like_count,
            "likedBy": list(self.liked_by),
            "uploaderId": self.uploader_id,
            "uploaderRole": self.uploader_role.value,
            "uploaderName": self.uploader_name,
            "uploaderLogo": self.uploader_logo,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


def toggle_device(liked_by: list[str], device_id: str) -> tuple[list[str], bool]:
    """Flip ``device_id`` membership; return the new list and the liked state."""
    if device_id in liked_by:
        return [d for d in liked_by if d != device_id], False
    return [*liked_by, device_id], True


def _newest_first(records: list) -> list:
    # Stable sort over reversed insertion order keeps ties newest-first.
    return sorted(reversed(records), key=lambda r: r.created_at, reverse=True)


class InMemoryDbClient:
    """Simple in-memory record store for development and tests."""

    def __init__(self):
        self.units: Dict[Role, Dict[str, UnitRecord]] = {role: {} for role in Role}
        self.members: Dict[str, MemberRecord] = {}
        self.media: Dict[str, MediaRecord] = {}
        self._lock = threading.Lock()

    def create_unit(self, record: UnitRecord) -> UnitRecord:
        with self._lock:
            if self._match_unit(
                record.role, email=record.email, normalized_name=record.normalized_name
            ):
                raise ConflictError(f"{record.role.label} already exists")
            self.units[record.role][record.id] = record
        return record

    def get_unit(self, role: Role, unit_id: str) -> Optional[UnitRecord]:
        return self.units[role].get(unit_id)

    def find_unit(
        self,
        role: Role,
        *,
        email: Optional[str] = None,
        normalized_name: Optional[str] = None,
    ) -> Optional[UnitRecord]:
        return self._match_unit(role, email=email, normalized_name=normalized_name)

    def _match_unit(
        self,
        role: Role,
        *,
        email: Optional[str],
        normalized_name: Optional[str],
    ) -> Optional[UnitRecord]:
        for record in self.units[role].values():
            if email and record.email == email:
                return record
            if normalized_name and record.normalized_name == normalized_name:
                return record
        return None

    def list_units(
        self,
        role: Role,
        *,
        campus_id: Optional[str] = None,
        district_id: Optional[str] = None,
    ) -> list[UnitRecord]:
        records = [
            record
            for record in self.units[role].values()
            if (campus_id is None or record.campus_id == campus_id)
            and (district_id is None or record.district_id == district_id)
        ]
        return _newest_first(records)

    def create_member(self, record: MemberRecord) -> MemberRecord:
        with self._lock:
            if self.find_member_by_email(record.email):
                raise ConflictError("Email already registered")
            self.members[record.id] = record
        return record

    def find_member_by_email(self, email: str) -> Optional[MemberRecord]:
        for record in self.members.values():
            if record.email == email:
                return record
        return None

    def list_members(self, *, cell_id: Optional[str] = None) -> list[MemberRecord]:
        records = [
            record
            for record in self.members.values()
            if cell_id is None or record.cell_id == cell_id
        ]
        return _newest_first(records)

    def create_media_post(self, record: MediaRecord) -> MediaRecord:
        self.media[record.id] = record
        return record

    def get_media_post(self, post_id: str) -> Optional[MediaRecord]:
        return self.media.get(post_id)

    def list_media_posts(self) -> list[MediaRecord]:
        return _newest_first(list(self.media.values()))

    def toggle_like(self, post_id: str, device_id: str) -> Optional[tuple[int, bool]]:
        with self._lock:
            record = self.media.get(post_id)
            if not record:
                return None
            record.liked_by, liked = toggle_device(record.liked_by, device_id)
            record.like_count = len(record.liked_by)
            record.updated_at = time.time()
            return record.like_count, liked


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except IntegrityError as exc:
            raise ConflictError("Record already exists") from exc
        except SQLAlchemyError as exc:
            logger.exception("Record store operation failed")
            raise UpstreamError("Database operation failed") from exc

    def _to_unit_record(self, role: Role, row: "_UnitColumns") -> UnitRecord:
        return UnitRecord(
            role=role,
            display_name=row.display_name,
            password=row.password,
            email=row.email,
            logo_url=row.logo_url or "",
            address=row.address,
            leader=row.leader,
            phone=row.phone,
            campus_id=row.campus_id,
            district_id=row.district_id,
            community_id=row.community_id,
            id=row.id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _to_member_record(self, row: "MemberRow") -> MemberRecord:
        return MemberRecord(
            full_name=row.full_name,
            address=row.address,
            phone=row.phone,
            email=row.email,
            district_id=row.district_id,
            cell_id=row.cell_id,
            id=row.id,
            created_at=row.created_at,
        )

    def _to_media_record(self, row: "MediaPostRow") -> MediaRecord:
        return MediaRecord(
            url=row.url,
            media_kind=MediaKind(row.media_kind),
            caption=row.caption,
            uploader_id=row.uploader_id,
            uploader_role=Role(row.uploader_role),
            uploader_name=row.uploader_name,
            uploader_logo=row.uploader_logo,
            like_count=row.like_count,
            liked_by=list(row.liked_by or []),
            id=row.id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def create_unit(self, record: UnitRecord) -> UnitRecord:
        row_cls = UNIT_ROWS[record.role]
        with self._session() as session:
            session.add(
                row_cls(
                    id=record.id,
                    display_name=record.display_name,
                    normalized_name=record.normalized_name,
                    email=record.email,
                    password=record.password,
                    logo_url=record.logo_url,
                    address=record.address,
                    leader=record.leader,
                    phone=record.phone,
                    campus_id=record.campus_id,
                    district_id=record.district_id,
                    community_id=record.community_id,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
            session.commit()
        return record

    def get_unit(self, role: Role, unit_id: str) -> Optional[UnitRecord]:
        with self._session() as session:
            row = session.get(UNIT_ROWS[role], unit_id)
            if not row:
                return None
            return self._to_unit_record(role, row)

    def find_unit(
        self,
        role: Role,
        *,
        email: Optional[str] = None,
        normalized_name: Optional[str] = None,
    ) -> Optional[UnitRecord]:
        row_cls = UNIT_ROWS[role]
        clauses = []
        if email:
            clauses.append(row_cls.email == email)
        if normalized_name:
            clauses.append(row_cls.normalized_name == normalized_name)
        if not clauses:
            return None
        with self._session() as session:
            stmt = (
                select(row_cls)
                .where(or_(*clauses))
                .order_by(row_cls.created_at.asc())
                .limit(1)
            )
            row = session.execute(stmt).scalar_one_or_none()
            if not row:
                return None
            return self._to_unit_record(role, row)

    def list_units(
        self,
        role: Role,
        *,
        campus_id: Optional[str] = None,
        district_id: Optional[str] = None,
    ) -> list[UnitRecord]:
        row_cls = UNIT_ROWS[role]
        stmt = select(row_cls)
        if campus_id is not None:
            stmt = stmt.where(row_cls.campus_id == campus_id)
        if district_id is not None:
            stmt = stmt.where(row_cls.district_id == district_id)
        stmt = stmt.order_by(row_cls.created_at.desc())
        with self._session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_unit_record(role, row) for row in rows]

    def create_member(self, record: MemberRecord) -> MemberRecord:
        with self._session() as session:
            session.add(
                MemberRow(
                    id=record.id,
                    full_name=record.full_name,
                    address=record.address,
                    phone=record.phone,
                    email=record.email,
                    district_id=record.district_id,
                    cell_id=record.cell_id,
                    created_at=record.created_at,
                )
            )
            session.commit()
        return record

    def find_member_by_email(self, email: str) -> Optional[MemberRecord]:
        with self._session() as session:
            stmt = select(MemberRow).where(MemberRow.email == email).limit(1)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_member_record(row) if row else None

    def list_members(self, *, cell_id: Optional[str] = None) -> list[MemberRecord]:
        stmt = select(MemberRow)
        if cell_id is not None:
            stmt = stmt.where(MemberRow.cell_id == cell_id)
        stmt = stmt.order_by(MemberRow.created_at.desc())
        with self._session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_member_record(row) for row in rows]

    def create_media_post(self, record: MediaRecord) -> MediaRecord:
        with self._session() as session:
            session.add(
                MediaPostRow(
                    id=record.id,
                    url=record.url,
                    media_kind=record.media_kind.value,
                    caption=record.caption,
                    like_count=record.like_count,
                    liked_by=list(record.liked_by),
                    uploader_id=record.uploader_id,
                    uploader_role=record.uploader_role.value,
                    uploader_name=record.uploader_name,
                    uploader_logo=record.uploader_logo,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
            session.commit()
        return record

    def get_media_post(self, post_id: str) -> Optional[MediaRecord]:
        with self._session() as session:
            row = session.get(MediaPostRow, post_id)
            return self._to_media_record(row) if row else None

    def list_media_posts(self) -> list[MediaRecord]:
        with self._session() as session:
            rows = (
                session.execute(
                    select(MediaPostRow).order_by(MediaPostRow.created_at.desc())
                )
                .scalars()
                .all()
            )
            return [self._to_media_record(row) for row in rows]

    def toggle_like(self, post_id: str, device_id: str) -> Optional[tuple[int, bool]]:
        with self._session() as session:
            stmt = (
                select(MediaPostRow)
                .where(MediaPostRow.id == post_id)
                .with_for_update()
            )
            row = session.execute(stmt).scalar_one_or_none()
            if not row:
                return None
            liked_by, liked = toggle_device(list(row.liked_by or []), device_id)
            # Assign a new list so the JSON column is flagged dirty.
            row.liked_by = liked_by
            row.like_count = len(liked_by)
            row.updated_at = time.time()
            session.commit()
            return row.like_count, liked


Base = declarative_base()


class _UnitColumns:
    id = Column(String, primary_key=True)
    display_name = Column(String, nullable=False)
    normalized_name = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=True, unique=True)
    password = Column(String, nullable=False)
    logo_url = Column(String, nullable=False, default="")
    address = Column(String, nullable=True)
    leader = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    campus_id = Column(String, nullable=True, index=True)
    district_id = Column(String, nullable=True, index=True)
    community_id = Column(String, nullable=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class CampusRow(_UnitColumns, Base):
    __tablename__ = "campuses"


class DistrictRow(_UnitColumns, Base):
    __tablename__ = "districts"


class CommunityRow(_UnitColumns, Base):
    __tablename__ = "communities"


class CellRow(_UnitColumns, Base):
    __tablename__ = "cells"


class SuperAdminRow(_UnitColumns, Base):
    __tablename__ = "super_admins"


UNIT_ROWS = {
    Role.CAMPUS: CampusRow,
    Role.DISTRICT: DistrictRow,
    Role.COMMUNITY: CommunityRow,
    Role.CELL: CellRow,
    Role.SUPER_ADMIN: SuperAdminRow,
}


class MemberRow(Base):
    __tablename__ = "members"

    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    district_id = Column(String, nullable=False, index=True)
    cell_id = Column(String, nullable=False, index=True)
    created_at = Column(Float, nullable=False)


class MediaPostRow(Base):
    __tablename__ = "media_posts"

    id = Column(String, primary_key=True)
    url = Column(String, nullable=False)
    media_kind = Column(String, nullable=False)
    caption = Column(String, nullable=False, default="")
    like_count = Column(Integer, nullable=False, default=0)
    liked_by = Column(JSON, nullable=False, default=list)
    uploader_id = Column(String, nullable=False)
    uploader_role = Column(String, nullable=False)
    uploader_name = Column(String, nullable=False)
    uploader_logo = Column(String, nullable=False)
    created_at = Column(Float, nullable=False, index=True)
    updated_at = Column(Float, nullable=False)
