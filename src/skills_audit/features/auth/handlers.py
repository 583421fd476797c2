"""API handlers for login, registration and account maintenance."""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from src.skills_audit.auth.dependencies import get_auth_service
from src.skills_audit.auth.gates import ModelGate, RoleGate
from src.skills_audit.auth.models import AuthResult, RequestIdentity
from src.skills_audit.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateEmailRequest,
)
from src.skills_audit.auth.service import AuthSessionService
from src.skills_audit.config import settings
from src.skills_audit.errors import FailureKind, ServiceError
from src.skills_audit.features.auth.schemas import AuthResponse, MeResponse, MessageResponse
from src.skills_audit.services.analytics import (
    AnalyticsEvents,
    PostHogService,
    get_analytics_service,
)
from src.skills_audit.services.rate_limiter import auth_rate_limit, write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _response(result: AuthResult) -> AuthResponse:
    return AuthResponse(**result.model_dump(exclude={"failure"}))


def _set_auth_cookie(response: Response, token: str, remember_me: bool) -> None:
    max_age = (
        settings.remember_me_max_age_seconds if remember_me else settings.auth_cookie_max_age_seconds
    )
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )


@router.post("/login", response_model=AuthResponse)
@auth_rate_limit
async def login(
    request: Request,
    response: Response,
    body: LoginRequest = Depends(ModelGate(LoginRequest)),
    auth_service: AuthSessionService = Depends(get_auth_service),
    analytics: PostHogService = Depends(get_analytics_service),
) -> AuthResponse:
    """
    Sign in with email and password.

    On success the provider token is returned in the body and also set as an
    HTTP-only cookie, so both bearer and cookie clients are supported.
    """
    result = await auth_service.login(body.email, body.password)
    if not result.success:
        analytics.capture(body.email, AnalyticsEvents.LOGIN_FAILED, {"reason": result.message})
        raise ServiceError(result.message, result.failure)

    _set_auth_cookie(response, result.token or "", body.remember_me)
    analytics.capture(result.user_id, AnalyticsEvents.LOGIN_SUCCEEDED, {"role": result.role})
    logger.info(f"User {result.user_id} logged in", extra={"user_id": result.user_id})
    return _response(result)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@auth_rate_limit
async def register(
    request: Request,
    body: RegisterRequest = Depends(ModelGate(RegisterRequest)),
    auth_service: AuthSessionService = Depends(get_auth_service),
    analytics: PostHogService = Depends(get_analytics_service),
) -> AuthResponse:
    result = await auth_service.register(body)
    if not result.success:
        analytics.capture(
            body.email, AnalyticsEvents.REGISTRATION_FAILED, {"reason": result.message}
        )
        raise ServiceError(result.message, result.failure)

    analytics.capture(
        result.user_id, AnalyticsEvents.USER_REGISTERED, {"department": body.department.value}
    )
    return _response(result)


@router.post("/logout", response_model=MessageResponse)
@write_rate_limit
async def logout(
    request: Request,
    response: Response,
    identity: RequestIdentity = Depends(RoleGate()),
    auth_service: AuthSessionService = Depends(get_auth_service),
    analytics: PostHogService = Depends(get_analytics_service),
) -> MessageResponse:
    await auth_service.logout(identity.user_id)
    response.delete_cookie(settings.auth_cookie_name)
    analytics.capture(identity.user_id, AnalyticsEvents.LOGGED_OUT)
    return MessageResponse(success=True, message="Logged out successfully")


@router.post("/reset-password", response_model=MessageResponse)
@auth_rate_limit
async def reset_password(
    request: Request,
    body: ResetPasswordRequest = Depends(ModelGate(ResetPasswordRequest)),
    auth_service: AuthSessionService = Depends(get_auth_service),
    analytics: PostHogService = Depends(get_analytics_service),
) -> MessageResponse:
    result = await auth_service.reset_password(body.email)
    if not result.success:
        raise ServiceError(result.message, result.failure)
    analytics.capture(body.email, AnalyticsEvents.PASSWORD_RESET_REQUESTED)
    return MessageResponse(success=True, message=result.message)


@router.post("/change-password", response_model=MessageResponse)
@auth_rate_limit
async def change_password(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    body: ChangePasswordRequest = Depends(ModelGate(ChangePasswordRequest)),
    auth_service: AuthSessionService = Depends(get_auth_service),
) -> MessageResponse:
    changed = await auth_service.change_password(
        identity.user_id, body.current_password, body.new_password
    )
    if not changed:
        raise ServiceError("Failed to change password", FailureKind.VALIDATION)
    return MessageResponse(success=True, message="Password changed successfully")


@router.post("/update-email", response_model=MessageResponse)
@auth_rate_limit
async def update_email(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    body: UpdateEmailRequest = Depends(ModelGate(UpdateEmailRequest)),
    auth_service: AuthSessionService = Depends(get_auth_service),
) -> MessageResponse:
    if body.new_email == identity.email:
        raise ServiceError("New email must differ from the current email", FailureKind.VALIDATION)
    if not await auth_service.update_email(identity.user_id, body.new_email):
        raise ServiceError("Failed to update email", FailureKind.VALIDATION)
    return MessageResponse(success=True, message="Email updated successfully")


@router.get("/me", response_model=MeResponse)
async def get_me(identity: RequestIdentity = Depends(RoleGate())) -> MeResponse:
    return MeResponse(**identity.model_dump())
