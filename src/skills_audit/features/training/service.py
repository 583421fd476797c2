"""Business logic for employee training records."""

import logging
from collections import Counter
from datetime import date

from src.skills_audit.features.training.schemas import AddTrainingRequest, TrainingStats
from src.skills_audit.services.database import DocumentStore
from src.skills_audit.services.database.models import (
    Collection,
    Training,
    TrainingPatch,
    TrainingStatus,
    generate_id,
    utc_now,
)
from src.skills_audit.services.database.query import (
    Operator,
    OrderBy,
    Predicate,
    asc,
    desc,
    eq,
    gte,
    lte,
)
from src.skills_audit.services.export import ExportFormat, export_training

logger = logging.getLogger(__name__)

NEWEST_FIRST = (desc("created_at"),)


class TrainingService:
    """Training records; failures are logged and reported as empty results or False."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def _find(
        self, predicates: list[Predicate], order_by: tuple[OrderBy, ...] = NEWEST_FIRST
    ) -> list[Training]:
        try:
            page = await self.store.query(Collection.TRAINING, predicates, order_by=order_by)
        except Exception as e:
            logger.error(f"Error querying training: {e}", exc_info=True)
            return []
        return [Training.from_document(document) for document in page]

    async def get_user_training(self, user_id: str) -> list[Training]:
        return await self._find([eq("user_id", user_id)])

    async def get_training(self, training_id: str) -> Training | None:
        try:
            document = await self.store.get_by_id(Collection.TRAINING, training_id)
        except Exception as e:
            logger.error(f"Error getting training {training_id}: {e}", exc_info=True)
            return None
        return Training.from_document(document) if document else None

    async def add_training(self, user_id: str, request: AddTrainingRequest) -> Training | None:
        now = utc_now()
        training = Training(
            id=generate_id(),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **request.model_dump(),
        )
        try:
            await self.store.set(Collection.TRAINING, training.id, training.to_document())
        except Exception as e:
            logger.error(f"Error adding training for user {user_id}: {e}", extra={"user_id": user_id})
            return None
        logger.info(
            f"Training {training.id} added",
            extra={"user_id": user_id, "training_id": training.id},
        )
        return training

    async def update_training(self, training_id: str, patch: TrainingPatch) -> bool:
        try:
            await self.store.update(Collection.TRAINING, training_id, patch.to_fields())
        except Exception as e:
            logger.error(f"Error updating training {training_id}: {e}")
            return False
        return True

    async def delete_training(self, training_id: str) -> bool:
        try:
            await self.store.delete(Collection.TRAINING, training_id)
        except Exception as e:
            logger.error(f"Error deleting training {training_id}: {e}")
            return False
        return True

    async def get_training_by_status(self, user_id: str, status: TrainingStatus) -> list[Training]:
        return await self._find([eq("user_id", user_id), eq("status", status)])

    async def get_training_by_date_range(
        self, user_id: str, start: date, end: date
    ) -> list[Training]:
        """Training whose start date falls within ``[start, end]``, newest record first."""
        return await self._find(
            [eq("user_id", user_id), gte("start_date", start), lte("start_date", end)]
        )

    async def owns_training(self, training_id: str, user_id: str) -> bool:
        training = await self.get_training(training_id)
        return training is not None and training.user_id == user_id

    async def get_training_stats(self, user_id: str) -> TrainingStats:
        trainings = await self.get_user_training(user_id)
        statuses = Counter(training.status for training in trainings)
        return TrainingStats(
            total=len(trainings),
            planned=statuses[TrainingStatus.PLANNED],
            in_progress=statuses[TrainingStatus.IN_PROGRESS],
            completed=statuses[TrainingStatus.COMPLETED],
            cancelled=statuses[TrainingStatus.CANCELLED],
            total_hours=sum(
                training.duration
                for training in trainings
                if training.status is TrainingStatus.COMPLETED
            ),
        )

    async def get_upcoming_training(self, user_id: str, today: date | None = None) -> list[Training]:
        """Planned training starting after ``today``, soonest first."""
        today = today or utc_now().date()
        return await self._find(
            [
                eq("user_id", user_id),
                eq("status", TrainingStatus.PLANNED),
                Predicate("start_date", Operator.GT, today),
            ],
            order_by=(asc("start_date"),),
        )

    async def get_completed_training(self, user_id: str) -> list[Training]:
        return await self.get_training_by_status(user_id, TrainingStatus.COMPLETED)

    async def get_training_hours(self, user_id: str) -> int:
        """Total hours of completed training."""
        return sum(training.duration for training in await self.get_completed_training(user_id))

    async def export_training(
        self, user_id: str, export_format: ExportFormat = ExportFormat.CSV
    ) -> bytes:
        return export_training(await self.get_user_training(user_id), export_format)
