"""Per-request identity resolution from a bearer token."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.skills_audit.auth.dependencies import get_identity_provider
from src.skills_audit.auth.models import RequestIdentity
from src.skills_audit.auth.service import AuthSessionService
from src.skills_audit.config import settings
from src.skills_audit.services.database import get_document_store
from src.skills_audit.services.database.models import Collection, Profile
from src.skills_audit.services.database.store import DocumentStore

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_token(request: Request) -> str | None:
    """Take the token from ``Authorization: Bearer <token>``, else from the auth cookie."""
    header = request.headers.get("Authorization")
    if header and header.startswith(BEARER_PREFIX):
        token = header[len(BEARER_PREFIX) :].strip()
        if token:
            return token
    return request.cookies.get(settings.auth_cookie_name) or None


async def resolve_identity(
    token: str, auth_service: AuthSessionService, store: DocumentStore
) -> RequestIdentity | None:
    """
    Turn a bearer token into a request identity.

    Returns None when the token is invalid, names no user, or the user's
    profile is missing or deactivated.
    """
    if not await auth_service.validate_token(token):
        return None

    user_id = await auth_service.get_user_id_from_token(token)
    if not user_id:
        return None

    document = await store.get_by_id(Collection.USERS, user_id)
    if document is None:
        logger.info(f"Valid token for {user_id} but no profile", extra={"user_id": user_id})
        return None

    profile = Profile.from_document(document)
    if not profile.is_active:
        return None
    return RequestIdentity.from_profile(profile)


class RequestIdentityMiddleware(BaseHTTPMiddleware):
    """
    Establish the caller's identity once per request, before any gate runs.

    The result is stored on ``request.state.identity`` (None when anonymous)
    together with the session attributes on ``request.state.session``.
    Authentication problems never fail the request: any error is logged and
    the request continues anonymously.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.identity = None
        request.state.session = {}

        token = extract_token(request)
        if token:
            try:
                store = get_document_store()
                auth_service = AuthSessionService(get_identity_provider(), store)
                identity = await resolve_identity(token, auth_service, store)
                if identity is not None:
                    request.state.identity = identity
                    request.state.session = identity.session_attributes()
            except Exception as e:
                logger.error(
                    f"Error in identity resolution: {e}",
                    exc_info=True,
                    extra={"error_type": "identity_resolution_failed", "path": request.url.path},
                )

        return await call_next(request)
