"""API handlers for training records."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, Request, Response, status

from src.skills_audit.auth.gates import ModelGate, RoleGate
from src.skills_audit.auth.models import RequestIdentity
from src.skills_audit.errors import FailureKind, ServiceError
from src.skills_audit.features.training.schemas import (
    DATE_ORDER_MESSAGE,
    AddTrainingRequest,
    TrainingHoursResponse,
    TrainingListResponse,
    TrainingStats,
    UpdateTrainingRequest,
)
from src.skills_audit.features.training.service import TrainingService
from src.skills_audit.services.database import get_document_store
from src.skills_audit.services.database.models import Training, TrainingStatus
from src.skills_audit.services.database.store import DocumentStore
from src.skills_audit.services.export import MEDIA_TYPES, ExportFormat
from src.skills_audit.services.rate_limiter import (
    bulk_rate_limit,
    default_rate_limit,
    write_rate_limit,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/training", tags=["training"])

TRAINING_NOT_FOUND = "Training not found"


def get_training_service(store: DocumentStore = Depends(get_document_store)) -> TrainingService:
    return TrainingService(store)


def _listing(trainings: list[Training]) -> TrainingListResponse:
    return TrainingListResponse(training=trainings, total=len(trainings))


@router.get("", response_model=TrainingListResponse)
@default_rate_limit
async def list_my_training(
    request: Request,
    status_filter: TrainingStatus | None = Query(None, alias="status"),
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> TrainingListResponse:
    if status_filter is not None:
        return _listing(await service.get_training_by_status(identity.user_id, status_filter))
    return _listing(await service.get_user_training(identity.user_id))


@router.get("/stats", response_model=TrainingStats)
@default_rate_limit
async def get_my_training_stats(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> TrainingStats:
    return await service.get_training_stats(identity.user_id)


@router.get("/upcoming", response_model=TrainingListResponse)
@default_rate_limit
async def list_upcoming_training(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> TrainingListResponse:
    return _listing(await service.get_upcoming_training(identity.user_id))


@router.get("/completed", response_model=TrainingListResponse)
@default_rate_limit
async def list_completed_training(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> TrainingListResponse:
    return _listing(await service.get_completed_training(identity.user_id))


@router.get("/hours", response_model=TrainingHoursResponse)
@default_rate_limit
async def get_my_training_hours(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> TrainingHoursResponse:
    return TrainingHoursResponse(total_hours=await service.get_training_hours(identity.user_id))


@router.get("/range", response_model=TrainingListResponse)
@default_rate_limit
async def list_training_in_range(
    request: Request,
    start: date,
    end: date,
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> TrainingListResponse:
    if end < start:
        raise ServiceError(DATE_ORDER_MESSAGE, FailureKind.VALIDATION)
    return _listing(await service.get_training_by_date_range(identity.user_id, start, end))


@router.get("/export")
@bulk_rate_limit
async def export_my_training(
    request: Request,
    format: ExportFormat = ExportFormat.CSV,
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> Response:
    content = await service.export_training(identity.user_id, format)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="training.{format.value}"'},
    )


@router.post("", response_model=Training, status_code=status.HTTP_201_CREATED)
@write_rate_limit
async def add_training(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    body: AddTrainingRequest = Depends(ModelGate(AddTrainingRequest)),
    service: TrainingService = Depends(get_training_service),
) -> Training:
    training = await service.add_training(identity.user_id, body)
    if training is None:
        raise ServiceError("Failed to add training", FailureKind.TRANSPORT)
    return training


async def _get_owned(
    service: TrainingService, training_id: str, identity: RequestIdentity
) -> Training:
    training = await service.get_training(training_id)
    if training is None or training.user_id != identity.user_id:
        raise ServiceError(TRAINING_NOT_FOUND, FailureKind.NOT_FOUND)
    return training


@router.get("/{training_id}", response_model=Training)
@default_rate_limit
async def get_training(
    request: Request,
    training_id: str,
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> Training:
    return await _get_owned(service, training_id, identity)


@router.put("/{training_id}", response_model=Training)
@write_rate_limit
async def update_training(
    request: Request,
    training_id: str,
    identity: RequestIdentity = Depends(RoleGate()),
    body: UpdateTrainingRequest = Depends(ModelGate(UpdateTrainingRequest)),
    service: TrainingService = Depends(get_training_service),
) -> Training:
    current = await _get_owned(service, training_id, identity)
    # Dates left out of the patch keep their stored values
    start_date = body.start_date if "start_date" in body.model_fields_set else current.start_date
    end_date = body.end_date if "end_date" in body.model_fields_set else current.end_date
    if start_date and end_date and end_date < start_date:
        raise ServiceError(DATE_ORDER_MESSAGE, FailureKind.VALIDATION)

    if not await service.update_training(training_id, body):
        raise ServiceError("Failed to update training", FailureKind.TRANSPORT)
    return await service.get_training(training_id)


@router.delete("/{training_id}")
@write_rate_limit
async def delete_training(
    request: Request,
    training_id: str,
    identity: RequestIdentity = Depends(RoleGate()),
    service: TrainingService = Depends(get_training_service),
) -> dict:
    await _get_owned(service, training_id, identity)
    if not await service.delete_training(training_id):
        raise ServiceError("Failed to delete training", FailureKind.TRANSPORT)
    return {"success": True, "message": "Training deleted"}
