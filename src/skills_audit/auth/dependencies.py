"""FastAPI dependencies for identity-provider access and the caller's request identity."""

import logging

from fastapi import Depends, Request

from src.skills_audit.auth.identity import IdentityProvider
from src.skills_audit.auth.models import RequestIdentity
from src.skills_audit.auth.service import AuthSessionService
from src.skills_audit.services.database import get_document_store
from src.skills_audit.services.database.store import DocumentStore

logger = logging.getLogger(__name__)

# Global identity provider instance (initialized in main.py startup)
_identity_provider: IdentityProvider | None = None


def set_identity_provider(provider: IdentityProvider | None) -> None:
    """
    Set the global identity provider.

    Called during application startup, and by tests to install a double.
    """
    global _identity_provider
    _identity_provider = provider


def get_identity_provider() -> IdentityProvider:
    """
    Get the global identity provider.

    Raises:
        RuntimeError: If the provider was not initialized
    """
    if _identity_provider is None:
        raise RuntimeError(
            "Identity provider not initialized. "
            "Ensure application startup calls set_identity_provider()."
        )
    return _identity_provider


def get_auth_service(
    identity: IdentityProvider = Depends(get_identity_provider),
    store: DocumentStore = Depends(get_document_store),
) -> AuthSessionService:
    return AuthSessionService(identity, store)


def get_request_identity(request: Request) -> RequestIdentity | None:
    """
    Return the identity established for this request, if any.

    Set by ``RequestIdentityMiddleware``; None means the caller is anonymous.
    """
    return getattr(request.state, "identity", None)


def get_session(request: Request) -> dict[str, str]:
    """Return the per-request session attributes (empty for anonymous callers)."""
    return getattr(request.state, "session", {})
