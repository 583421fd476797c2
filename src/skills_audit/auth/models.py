"""Data models for authentication and per-request identity."""

from pydantic import BaseModel, ConfigDict

from src.skills_audit.errors import FailureKind
from src.skills_audit.services.database.models import Profile, Role


class SessionKeys:
    """Names of the per-request session attributes."""

    USER_ID = "UserId"
    USER_ROLE = "UserRole"
    USER_EMAIL = "UserEmail"
    USER_FULL_NAME = "UserFullName"


class RequestIdentity(BaseModel):
    """
    Identity of the caller for the current request only.

    Built by the identity-resolution middleware from a verified token and an
    active profile, then passed explicitly to gates, handlers and services.

    Example:
        >>> identity = RequestIdentity.from_profile(profile)
        >>> identity.role
        <Role.EMPLOYEE: 'employee'>
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
    full_name: str
    role: Role
    employee_id: str
    department: str

    @classmethod
    def from_profile(cls, profile: Profile) -> "RequestIdentity":
        return cls(
            user_id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=profile.role,
            employee_id=profile.employee_id,
            department=profile.department,
        )

    def session_attributes(self) -> dict[str, str]:
        return {
            SessionKeys.USER_ID: self.user_id,
            SessionKeys.USER_ROLE: self.role.value,
            SessionKeys.USER_EMAIL: self.email,
            SessionKeys.USER_FULL_NAME: self.full_name,
        }


class AuthResult(BaseModel):
    """Outcome of a single authentication operation."""

    success: bool
    message: str
    user_id: str | None = None
    token: str | None = None
    email: str | None = None
    role: str | None = None
    failure: FailureKind | None = None

    @classmethod
    def fail(cls, message: str, failure: FailureKind) -> "AuthResult":
        return cls(success=False, message=message, failure=failure)
