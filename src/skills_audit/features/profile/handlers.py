"""API handlers for the caller's own profile."""

import logging

from fastapi import APIRouter, Depends, Request

from src.skills_audit.auth.gates import ModelGate, RoleGate
from src.skills_audit.auth.models import RequestIdentity
from src.skills_audit.errors import FailureKind, ServiceError
from src.skills_audit.features.users.handlers import get_user_service
from src.skills_audit.features.users.schemas import EditProfileRequest, UserResponse
from src.skills_audit.features.users.service import UserService, UserStats
from src.skills_audit.services.rate_limiter import default_rate_limit, write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=UserResponse)
@default_rate_limit
async def get_profile(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    profile = await service.get_user_by_id(identity.user_id)
    if profile is None:
        logger.warning(f"Profile not found for user {identity.user_id}")
        raise ServiceError("User profile not found", FailureKind.NOT_FOUND)
    return UserResponse.from_profile(profile)


@router.put("", response_model=UserResponse)
@write_rate_limit
async def update_profile(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    body: EditProfileRequest = Depends(ModelGate(EditProfileRequest)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Update name, department, phone number and position. Email and role are not editable here."""
    if not await service.update_profile(identity.user_id, body.to_patch()):
        raise ServiceError("Failed to update profile", FailureKind.TRANSPORT)

    profile = await service.get_user_by_id(identity.user_id)
    if profile is None:
        raise ServiceError("User profile not found", FailureKind.NOT_FOUND)
    return UserResponse.from_profile(profile)


@router.get("/stats", response_model=UserStats)
@default_rate_limit
async def get_profile_stats(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: UserService = Depends(get_user_service),
) -> UserStats:
    return await service.get_user_stats(identity.user_id)
