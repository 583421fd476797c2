"""API handlers for user administration (managers and admins)."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request

from src.skills_audit.auth.gates import ModelGate, RoleGate, admit
from src.skills_audit.auth.models import RequestIdentity
from src.skills_audit.config import settings
from src.skills_audit.errors import FailureKind, ServiceError
from src.skills_audit.features.users.schemas import (
    UpdateRoleRequest,
    UserListResponse,
    UserResponse,
)
from src.skills_audit.features.users.service import UserService
from src.skills_audit.services.database import InvalidCursorError, get_document_store
from src.skills_audit.services.database.models import Department, Role
from src.skills_audit.services.database.query import OrderBy
from src.skills_audit.services.database.store import DocumentStore
from src.skills_audit.services.rate_limiter import default_rate_limit, write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(admit(RoleGate(Role.ADMIN, Role.MANAGER)))],
)

SortField = Literal["last_name", "first_name", "employee_id", "created_at"]


def get_user_service(store: DocumentStore = Depends(get_document_store)) -> UserService:
    return UserService(store)


@router.get("", response_model=UserListResponse)
@default_rate_limit
async def list_users(
    request: Request,
    department: Department | None = None,
    order_by: SortField | None = None,
    descending: bool = False,
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    cursor: str | None = None,
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    """
    List active users, one page at a time.

    Pass the returned ``next_cursor`` back as ``cursor`` to fetch the next
    page; it is null once the last page has been reached. A cursor is only
    valid for the same department, ordering and direction it was issued for.
    """
    try:
        if department is not None:
            ordering = OrderBy(order_by, descending) if order_by else None
            result = await service.get_users_by_department(
                department.value, limit=limit, cursor=cursor, order_by=ordering
            )
        else:
            result = await service.list_active_users(limit=limit, cursor=cursor)
    except InvalidCursorError as e:
        raise ServiceError(str(e), FailureKind.VALIDATION) from e

    return UserListResponse(
        users=[UserResponse.from_profile(profile) for profile in result.users],
        next_cursor=result.next_cursor,
    )


@router.get("/{user_id}", response_model=UserResponse)
@default_rate_limit
async def get_user(
    request: Request, user_id: str, service: UserService = Depends(get_user_service)
) -> UserResponse:
    profile = await service.get_user_by_id(user_id)
    if profile is None:
        raise ServiceError("User not found", FailureKind.NOT_FOUND)
    return UserResponse.from_profile(profile)


async def _require_user(service: UserService, user_id: str) -> None:
    if await service.get_user_by_id(user_id) is None:
        raise ServiceError("User not found", FailureKind.NOT_FOUND)


@router.put("/{user_id}/role", response_model=UserResponse)
@write_rate_limit
async def update_user_role(
    request: Request,
    user_id: str,
    identity: RequestIdentity = Depends(RoleGate(Role.ADMIN)),
    body: UpdateRoleRequest = Depends(ModelGate(UpdateRoleRequest)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    await _require_user(service, user_id)
    if user_id == identity.user_id and body.role is not Role.ADMIN:
        raise ServiceError("You cannot remove your own admin role", FailureKind.VALIDATION)

    if not await service.update_role(user_id, body.role):
        raise ServiceError("Failed to update role", FailureKind.TRANSPORT)

    logger.info(
        f"Role of {user_id} set to {body.role.value} by {identity.user_id}",
        extra={"user_id": user_id, "actor_id": identity.user_id},
    )
    return UserResponse.from_profile(await service.get_user_by_id(user_id))


@router.post("/{user_id}/activate")
@write_rate_limit
async def activate_user(
    request: Request,
    user_id: str,
    identity: RequestIdentity = Depends(RoleGate(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
) -> dict:
    await _require_user(service, user_id)
    if not await service.activate_user(user_id):
        raise ServiceError("Failed to activate user", FailureKind.TRANSPORT)
    return {"success": True, "message": "User activated"}


@router.post("/{user_id}/deactivate")
@write_rate_limit
async def deactivate_user(
    request: Request,
    user_id: str,
    identity: RequestIdentity = Depends(RoleGate(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
) -> dict:
    await _require_user(service, user_id)
    if user_id == identity.user_id:
        raise ServiceError("You cannot deactivate your own account", FailureKind.VALIDATION)
    if not await service.deactivate_user(user_id):
        raise ServiceError("Failed to deactivate user", FailureKind.TRANSPORT)
    return {"success": True, "message": "User deactivated"}
