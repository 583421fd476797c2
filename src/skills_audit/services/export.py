"""CSV and JSON export of skill and training records."""

import csv
import io
import json
from collections.abc import Callable, Sequence
from datetime import date, datetime
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel

from src.skills_audit.services.database.models import Skill, Training

RecordT = TypeVar("RecordT", bound=BaseModel)


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
}

SKILL_HEADERS = [
    "Name",
    "Category",
    "Level",
    "Years Experience",
    "Description",
    "Verified",
    "Created Date",
]

TRAINING_HEADERS = [
    "Title",
    "Provider",
    "Category",
    "Status",
    "Start Date",
    "End Date",
    "Duration (Hours)",
    "Description",
    "Created Date",
]


def _day(value: date | datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _skill_row(skill: Skill) -> list[str]:
    return [
        skill.name,
        skill.category,
        skill.level.value,
        str(skill.years_experience),
        skill.description or "",
        "Yes" if skill.is_verified else "No",
        _day(skill.created_at),
    ]


def _training_row(training: Training) -> list[str]:
    return [
        training.title,
        training.provider,
        training.category,
        training.status.value,
        _day(training.start_date),
        _day(training.end_date),
        str(training.duration),
        training.description or "",
        _day(training.created_at),
    ]


def export_to_csv(
    records: Sequence[RecordT], headers: list[str], row: Callable[[RecordT], list[str]]
) -> bytes:
    """Render records as UTF-8 CSV with a header line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for record in records:
        writer.writerow(row(record))
    return buffer.getvalue().encode("utf-8")


def export_to_json(records: Sequence[BaseModel]) -> bytes:
    """Render records as an indented UTF-8 JSON array."""
    payload = [record.model_dump(mode="json") for record in records]
    return json.dumps(payload, indent=2).encode("utf-8")


def export_skills(skills: Sequence[Skill], export_format: ExportFormat) -> bytes:
    if export_format is ExportFormat.JSON:
        return export_to_json(skills)
    return export_to_csv(skills, SKILL_HEADERS, _skill_row)


def export_training(trainings: Sequence[Training], export_format: ExportFormat) -> bytes:
    if export_format is ExportFormat.JSON:
        return export_to_json(trainings)
    return export_to_csv(trainings, TRAINING_HEADERS, _training_row)
