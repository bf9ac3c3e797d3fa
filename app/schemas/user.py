"""
User schemas: public profile views and update requests.
"""
from pydantic import BaseModel, field_validator, ConfigDict
from typing import Optional
from datetime import datetime

from app.models.user import Role, UserStatus


class UserOut(BaseModel):
    """
    Public-safe user representation.
    hashed_password is never included — Pydantic only exposes fields declared here.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    role: Role
    status: UserStatus
    created_at: datetime

    # UUID → str conversion for JSON serialization
    @field_validator("id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> str:
        return str(v)


class UserSummary(BaseModel):
    """Minimal user view embedded in instructor/admin listings."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> str:
        return str(v)


class UserUpdateRequest(BaseModel):
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) > 100:
            raise ValueError("Name must be at most 100 characters")
        return v


class RoleUpdateRequest(BaseModel):
    role: Role
