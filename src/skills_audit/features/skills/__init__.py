"""Skill records feature."""

from src.skills_audit.features.skills.handlers import router
from src.skills_audit.features.skills.service import SkillService

__all__ = ["router", "SkillService"]
