# backend/logbookdb/apps/accounts/schemas.py

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .models import UserRole, UserStatus


class OrganizationCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=64, pattern=r"^[a-z0-9][a-z0-9-]*$")
    timezone: str = Field(default="UTC", max_length=64)


class UserCreate(BaseModel):
    """
    Fixture / import payloads use camelCase (`displayName`); both spellings
    are accepted.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    email: EmailStr
    display_name: str = Field(alias="displayName", min_length=1, max_length=255)
    role: UserRole = UserRole.VIEWER
    status: UserStatus = UserStatus.ACTIVE
