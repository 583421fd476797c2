"""Response schemas for authentication endpoints."""

from pydantic import BaseModel

from src.skills_audit.services.database.models import Role


class AuthResponse(BaseModel):
    success: bool
    message: str
    user_id: str | None = None
    email: str | None = None
    role: str | None = None
    token: str | None = None


class MessageResponse(BaseModel):
    success: bool
    message: str


class MeResponse(BaseModel):
    user_id: str
    email: str
    full_name: str
    role: Role
    employee_id: str
    department: str
