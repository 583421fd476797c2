"""Tests for TrainingService against the in-memory document store."""

from datetime import date

import pytest

from src.skills_audit.features.training.schemas import AddTrainingRequest
from src.skills_audit.features.training.service import TrainingService
from src.skills_audit.services.database import InMemoryDocumentStore
from src.skills_audit.services.database.models import (
    Collection,
    Training,
    TrainingPatch,
    TrainingStatus,
)


def make_training(training_id: str, user_id: str = "user-1", **overrides) -> Training:
    fields = {
        "id": training_id,
        "user_id": user_id,
        "title": "Public Finance Management",
        "provider": "National School of Government",
        "category": "Finance",
        "status": TrainingStatus.COMPLETED,
        "start_date": date(2026, 2, 1),
        "end_date": date(2026, 2, 5),
        "duration": 16,
        "created_at": "2026-01-10T08:00:00Z",
    }
    fields.update(overrides)
    return Training(**fields)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def service(store) -> TrainingService:
    return TrainingService(store)


async def save(store, *trainings: Training) -> None:
    for training in trainings:
        await store.set(Collection.TRAINING, training.id, training.to_document())


@pytest.mark.asyncio
class TestTrainingRecords:
    """Tests for single training records."""

    async def test_add_training(self, service, store):
        """Test new training is Planned, owned by the user, with ISO dates."""
        request = AddTrainingRequest(
            title="Risk Management",
            provider="Institute of Risk",
            category="Governance",
            start_date=date(2026, 5, 4),
            end_date=date(2026, 5, 6),
            duration=24,
        )

        training = await service.add_training("user-1", request)

        assert training.status is TrainingStatus.PLANNED
        stored = await store.get_by_id(Collection.TRAINING, training.id)
        assert stored["user_id"] == "user-1"
        assert stored["start_date"] == "2026-05-04"

    async def test_user_training_newest_first(self, service, store):
        """Test the user's training is listed newest first."""
        await save(
            store,
            make_training("t1", created_at="2026-01-01T00:00:00Z"),
            make_training("t2", created_at="2026-03-01T00:00:00Z"),
            make_training("t3", user_id="user-2"),
        )

        trainings = await service.get_user_training("user-1")

        assert [training.id for training in trainings] == ["t2", "t1"]

    async def test_update_and_delete(self, service, store):
        """Test a status patch is stored and a deleted record is gone."""
        await save(store, make_training("t1", status=TrainingStatus.IN_PROGRESS))

        assert await service.update_training("t1", TrainingPatch(status=TrainingStatus.COMPLETED))
        assert (await service.get_training("t1")).status is TrainingStatus.COMPLETED

        assert await service.delete_training("t1") is True
        assert await service.get_training("t1") is None

    async def test_owns_training(self, service, store):
        await save(store, make_training("t1"))

        assert await service.owns_training("t1", "user-1") is True
        assert await service.owns_training("t1", "user-2") is False


@pytest.mark.asyncio
class TestTrainingQueries:
    """Tests for training listings, stats and export."""

    async def test_stats_count_statuses_and_completed_hours(self, service, store):
        """Test stats count statuses and sum hours of completed training."""
        await save(
            store,
            make_training("t1", duration=10),
            make_training("t2", duration=6),
            make_training("t3", status=TrainingStatus.PLANNED, duration=40),
            make_training("t4", status=TrainingStatus.CANCELLED, duration=8),
        )

        stats = await service.get_training_stats("user-1")

        assert stats.total == 4
        assert stats.completed == 2
        assert stats.planned == 1
        assert stats.cancelled == 1
        assert stats.in_progress == 0
        assert stats.total_hours == 16

    async def test_training_hours_only_count_completed(self, service, store):
        """Test in-progress hours are not counted."""
        await save(
            store,
            make_training("t1", duration=10),
            make_training("t2", status=TrainingStatus.IN_PROGRESS, duration=30),
        )

        assert await service.get_training_hours("user-1") == 10

    async def test_upcoming_is_planned_and_future_soonest_first(self, service, store):
        """Test upcoming holds planned training after today, soonest first."""
        # Arrange
        await save(
            store,
            make_training("past", status=TrainingStatus.PLANNED, start_date=date(2026, 1, 2)),
            make_training("later", status=TrainingStatus.PLANNED, start_date=date(2026, 9, 1)),
            make_training("soon", status=TrainingStatus.PLANNED, start_date=date(2026, 7, 1)),
            make_training("done", start_date=date(2026, 8, 1)),
        )

        # Act
        trainings = await service.get_upcoming_training("user-1", today=date(2026, 6, 1))

        # Assert
        assert [training.id for training in trainings] == ["soon", "later"]

    async def test_date_range_is_inclusive(self, service, store):
        """Test both range bounds are included and undated training is excluded."""
        await save(
            store,
            make_training("t1", start_date=date(2026, 3, 1)),
            make_training("t2", start_date=date(2026, 3, 31)),
            make_training("t3", start_date=date(2026, 4, 1)),
            make_training("t4", start_date=None),
        )

        trainings = await service.get_training_by_date_range(
            "user-1", date(2026, 3, 1), date(2026, 3, 31)
        )

        assert {training.id for training in trainings} == {"t1", "t2"}

    async def test_csv_export(self, service, store):
        """Test CSV columns and date formatting."""
        await save(store, make_training("t1"))

        lines = (await service.export_training("user-1")).decode("utf-8").splitlines()

        assert lines[0] == (
            "Title,Provider,Category,Status,Start Date,End Date,Duration (Hours),"
            "Description,Created Date"
        )
        assert lines[1] == (
            "Public Finance Management,National School of Government,Finance,Completed,"
            "2026-02-01,2026-02-05,16,,2026-01-10"
        )
