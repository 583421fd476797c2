"""Pydantic schemas for training endpoints."""

from datetime import date

from pydantic import BaseModel, Field, model_validator

from src.skills_audit.services.database.models import Training, TrainingPatch, TrainingStatus

DATE_ORDER_MESSAGE = "End date must not be before start date"


class AddTrainingRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    provider: str = Field(min_length=1, max_length=100)
    category: str = Field(min_length=1, max_length=50)
    status: TrainingStatus = TrainingStatus.PLANNED
    start_date: date | None = None
    end_date: date | None = None
    duration: int = Field(default=0, ge=0, le=10000, description="Duration in hours")
    certificate_url: str | None = Field(None, max_length=500)
    description: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_dates(self) -> "AddTrainingRequest":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError(DATE_ORDER_MESSAGE)
        return self


class UpdateTrainingRequest(TrainingPatch):
    @model_validator(mode="after")
    def check_dates(self) -> "UpdateTrainingRequest":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError(DATE_ORDER_MESSAGE)
        return self


class TrainingListResponse(BaseModel):
    training: list[Training]
    total: int


class TrainingStats(BaseModel):
    total: int = 0
    planned: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    total_hours: int = 0


class TrainingHoursResponse(BaseModel):
    total_hours: int
