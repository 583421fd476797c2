"""Pydantic models for document-store entities."""

from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Self
from uuid import uuid4

from pydantic import BaseModel, Field


class Collection(str, Enum):
    """Document collections (one Supabase table each)."""

    USERS = "users"
    SKILLS = "skills"
    TRAINING = "training"
    REPORTS = "reports"
    NOTIFICATIONS = "notifications"
    QUALIFICATIONS = "qualifications"


class Role(str, Enum):
    """Access roles, ordered from most to least privileged."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class Department(str, Enum):
    """Departments an employee can belong to."""

    TREASURY = "National Treasury"
    FINANCE = "Finance"
    HR = "Human Resources"
    IT = "Information Technology"
    OPERATIONS = "Operations"
    LEGAL = "Legal"
    AUDIT = "Audit"


class SkillLevel(str, Enum):
    """Self-assessed proficiency level."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


class TrainingStatus(str, Enum):
    """Training lifecycle status."""

    PLANNED = "Planned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


def generate_id() -> str:
    """Generate a local document id (32 lowercase hex characters)."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(UTC)


class Document(BaseModel):
    """Base for entities stored as flat documents keyed by ``id``."""

    id: str

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible field map written to the store."""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        return cls.model_validate(document)


class Profile(Document):
    """Application-owned employee record; ``id`` equals the identity account id."""

    first_name: str
    last_name: str
    email: str
    employee_id: str
    department: str
    role: Role = Role.EMPLOYEE
    is_active: bool = True
    phone_number: str | None = None
    position: str | None = None
    last_activity: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Skill(Document):
    """A skill recorded against an employee."""

    user_id: str
    name: str
    category: str
    level: SkillLevel
    description: str | None = None
    years_experience: int = Field(default=0, ge=0)
    is_verified: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Training(Document):
    """A training course attended or planned by an employee."""

    user_id: str
    title: str
    provider: str
    category: str
    status: TrainingStatus
    start_date: date | None = None
    end_date: date | None = None
    duration: int = Field(default=0, ge=0, description="Duration in hours")
    certificate_url: str | None = None
    description: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# ============================================================================
# TYPED PATCHES
# ============================================================================


class Patch(BaseModel):
    """Partial update: only fields explicitly set are written."""

    def to_fields(self) -> dict[str, Any]:
        """Return the set fields plus a fresh ``updated_at``."""
        fields = self.model_dump(mode="json", exclude_unset=True)
        fields["updated_at"] = utc_now().isoformat()
        return fields


class ProfilePatch(Patch):
    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    email: str | None = None
    department: Department | None = None
    role: Role | None = None
    is_active: bool | None = None
    phone_number: str | None = None
    position: str | None = Field(None, max_length=100)
    last_activity: datetime | None = None


class SkillPatch(Patch):
    name: str | None = Field(None, min_length=1, max_length=100)
    category: str | None = Field(None, min_length=1, max_length=50)
    level: SkillLevel | None = None
    description: str | None = Field(None, max_length=500)
    years_experience: int | None = Field(None, ge=0, le=60)
    is_verified: bool | None = None


class TrainingPatch(Patch):
    title: str | None = Field(None, min_length=1, max_length=200)
    provider: str | None = Field(None, min_length=1, max_length=100)
    category: str | None = Field(None, min_length=1, max_length=50)
    status: TrainingStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    duration: int | None = Field(None, ge=0)
    certificate_url: str | None = None
    description: str | None = Field(None, max_length=1000)
