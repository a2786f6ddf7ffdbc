"""
Pydantic schemas for the FastAPI backend.

Request models keep every field optional so blank or missing input is
reported by the service layer as a ``ValidationError`` (HTTP 400) listing the
missing fields, rather than as a framework-level 422.
"""

from __future__ import annotations

from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field


class RequiredFieldsModel(BaseModel):
    required_fields: ClassVar[tuple[str, ...]] = ()

    def missing_fields(self) -> list[str]:
        missing = []
        for name in self.required_fields:
            value = getattr(self, name)
            if value is None or not str(value).strip():
                missing.append(name)
        return missing


class CampusRegistration(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = ("name", "address", "email", "password")

    name: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class DistrictRegistration(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = ("name", "campus", "email", "password")

    name: Optional[str] = None
    campus: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class CommunityRegistration(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = (
        "name",
        "district",
        "leader",
        "leaderPhone",
        "password",
    )

    name: Optional[str] = None
    district: Optional[str] = None
    leader: Optional[str] = None
    leaderPhone: Optional[str] = None
    password: Optional[str] = None


class CellRegistration(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = (
        "name",
        "campus",
        "district",
        "community",
        "address",
        "leader",
        "phone",
        "email",
        "password",
    )

    name: Optional[str] = None
    campus: Optional[str] = None
    district: Optional[str] = None
    community: Optional[str] = None
    address: Optional[str] = None
    leader: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class SuperAdminRegistration(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = ("name", "password")

    name: Optional[str] = None
    password: Optional[str] = None


class MemberRegistration(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = (
        "fullName",
        "address",
        "phone",
        "email",
        "district",
        "cell",
    )

    fullName: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    district: Optional[str] = None
    cell: Optional[str] = None


class LoginRequest(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = ("identifier", "password")

    identifier: Optional[str] = None
    password: Optional[str] = None


class NameLoginRequest(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = ("name", "password")

    name: Optional[str] = None
    password: Optional[str] = None


class UploadMetadata(RequiredFieldsModel):
    required_fields: ClassVar[tuple[str, ...]] = (
        "uploaderId",
        "uploaderRole",
        "uploaderName",
        "uploaderLogo",
    )

    comment: Optional[str] = None
    uploaderId: Optional[str] = None
    uploaderRole: Optional[str] = None
    uploaderName: Optional[str] = None
    uploaderLogo: Optional[str] = None


class LikeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    device_id: Optional[str] = Field(default=None, alias="deviceId")


class LikeResponse(BaseModel):
    likes: int
    liked: bool


class LoginUser(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    logo: str = ""


class UniversalLoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    role: str
    user: LoginUser


class HealthResponse(BaseModel):
    ok: bool
    uptime: float
