"""User schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """User role enumeration."""

    USER = "user"
    PREMIUM = "premium"
    ADMIN = "admin"


PREMIUM_ROLES = frozenset({Role.PREMIUM, Role.ADMIN})


def validate_phone_number(value: str | None) -> str | None:
    """Validate phone number format; empty strings mean "no phone"."""
    if value is None:
        return None
    value = value.strip()
    if value == "":
        return ""
    cleaned = (
        value.replace("-", "")
        .replace(" ", "")
        .replace("(", "")
        .replace(")", "")
        .replace("+", "")
    )
    if not cleaned.isdigit():
        raise ValueError("Phone number must contain only digits and separators")
    if len(cleaned) < 7:
        raise ValueError("Phone number must have at least 7 digits")
    return value


class UserResponse(BaseModel):
    """Public view of a user record (no secrets)."""

    id: UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    role: Role
    is_verified: bool
    auth_provider: str = "local"
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_record(cls, user: dict[str, Any]) -> "UserResponse":
        """Build the public view from a raw ``users`` row."""
        return cls(
            id=user["id"],
            email=user["email"],
            first_name=user.get("first_name"),
            last_name=user.get("last_name"),
            phone_number=user.get("phone_number"),
            role=user["role"],
            is_verified=user["is_verified"],
            auth_provider=user.get("oauth_provider") or "local",
            created_at=user["created_at"],
            updated_at=user["updated_at"],
        )


class UserUpdate(BaseModel):
    """Schema for updating the caller's own profile."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    phone_number: str | None = Field(None, max_length=20)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        """Validate phone number format."""
        return validate_phone_number(v)


class AdminUserUpdate(UserUpdate):
    """Fields an administrator may change on any account."""

    role: Role | None = None
    is_verified: bool | None = None

    @field_validator("role", "is_verified")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """Role and verification flag can be omitted but never cleared."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class UserStatusUpdate(BaseModel):
    """Admin toggle for the verification flag."""

    is_verified: bool
