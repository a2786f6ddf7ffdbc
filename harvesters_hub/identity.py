"""
Roles and display-name normalization shared by the record store and services.
"""

from __future__ import annotations

import re
from enum import Enum


class Role(str, Enum):
    CAMPUS = "campus"
    DISTRICT = "district"
    COMMUNITY = "community"
    CELL = "cell"
    SUPER_ADMIN = "superadmin"

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]


_ROLE_LABELS = {
    Role.CAMPUS: "Campus",
    Role.DISTRICT: "District",
    Role.COMMUNITY: "Community",
    Role.CELL: "Cell",
    Role.SUPER_ADMIN: "Super Admin",
}

# Probe order for the universal login. Organizational seniority, with the
# super admin collection checked last.
LOGIN_CASCADE: tuple[Role, ...] = (
    Role.CAMPUS,
    Role.DISTRICT,
    Role.COMMUNITY,
    Role.CELL,
    Role.SUPER_ADMIN,
)

_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(value: str | None) -> str:
    """Trim and collapse internal runs of whitespace to a single space."""
    return _WHITESPACE_RE.sub(" ", value or "").strip()


def normalize_name(value: str | None) -> str:
    """Return the case-insensitive lookup key for a display name."""
    return collapse_whitespace(value).lower()


def parse_role(value: str | None) -> Role | None:
    """Map a client-supplied role string onto ``Role``; ``None`` if unknown."""
    cleaned = normalize_name(value).replace(" ", "").replace("_", "")
    for role in Role:
        if role.value == cleaned:
            return role
    return None
