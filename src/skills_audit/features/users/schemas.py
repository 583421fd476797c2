"""Pydantic schemas for user administration and profile endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.skills_audit.auth.schemas import validate_phone_number
from src.skills_audit.services.database.models import Department, Profile, ProfilePatch, Role


class UserResponse(BaseModel):
    """Profile as exposed over HTTP."""

    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    employee_id: str
    department: str
    role: Role
    is_active: bool
    phone_number: str | None = None
    position: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: Profile) -> "UserResponse":
        return cls(full_name=profile.full_name, **profile.model_dump(exclude={"last_activity"}))


class UserListResponse(BaseModel):
    users: list[UserResponse]
    next_cursor: str | None = None


class EditProfileRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    department: Department
    phone_number: str | None = None
    position: str | None = Field(None, max_length=100)

    @field_validator("phone_number")
    @classmethod
    def check_phone_number(cls, value: str | None) -> str | None:
        return validate_phone_number(value)

    def to_patch(self) -> ProfilePatch:
        return ProfilePatch(**self.model_dump())


class UpdateRoleRequest(BaseModel):
    role: Role
