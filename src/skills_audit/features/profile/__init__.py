"""Own-profile feature."""

from src.skills_audit.features.profile.handlers import router

__all__ = ["router"]
