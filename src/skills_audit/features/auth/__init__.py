"""Authentication endpoints."""

from src.skills_audit.features.auth.handlers import router

__all__ = ["router"]
