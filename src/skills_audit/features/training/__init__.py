"""Training records feature."""

from src.skills_audit.features.training.handlers import router
from src.skills_audit.features.training.service import TrainingService

__all__ = ["router", "TrainingService"]
