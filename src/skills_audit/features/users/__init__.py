"""User administration feature."""

from src.skills_audit.features.users.handlers import router
from src.skills_audit.features.users.service import UserService

__all__ = ["router", "UserService"]
