"""Pydantic schemas for skills endpoints."""

from pydantic import BaseModel, Field

from src.skills_audit.services.database.models import Skill, SkillLevel, SkillPatch


class AddSkillRequest(BaseModel):
    """A new skill for the caller's own record."""

    name: str = Field(min_length=1, max_length=100)
    category: str = Field(min_length=1, max_length=50)
    level: SkillLevel
    description: str | None = Field(None, max_length=500)
    years_experience: int = Field(default=0, ge=0, le=50)


class UpdateSkillRequest(BaseModel):
    """Partial edit of an owned skill. Verification is not self-service."""

    name: str | None = Field(None, min_length=1, max_length=100)
    category: str | None = Field(None, min_length=1, max_length=50)
    level: SkillLevel | None = None
    description: str | None = Field(None, max_length=500)
    years_experience: int | None = Field(None, ge=0, le=50)

    def to_patch(self) -> SkillPatch:
        return SkillPatch(**self.model_dump(exclude_unset=True))


class ImportSkillsRequest(BaseModel):
    skills: list[AddSkillRequest] = Field(min_length=1, max_length=200)


class SkillListResponse(BaseModel):
    skills: list[Skill]
    total: int


class SkillStats(BaseModel):
    total: int = 0
    beginner: int = 0
    intermediate: int = 0
    advanced: int = 0
    expert: int = 0
    verified: int = 0
