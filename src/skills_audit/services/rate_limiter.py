"""Per-caller request rate limits (slowapi)."""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.skills_audit.auth.models import RequestIdentity
from src.skills_audit.config import settings

logger = logging.getLogger(__name__)


def get_user_id_or_ip(request: Request) -> str:
    """
    Rate-limit key: ``user:<id>`` for a resolved caller, else ``ip:<address>``.

    Runs after ``RequestIdentityMiddleware``, so login and registration
    attempts, which are always anonymous, are counted per client address.
    """
    identity: RequestIdentity | None = getattr(request.state, "identity", None)
    if identity is not None:
        return f"user:{identity.user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_id_or_ip,
    default_limits=[],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)


class RateLimitTiers:
    """Limits per endpoint category, as slowapi limit strings."""

    # Reads of the caller's own records and admin listings
    DEFAULT = ["100 per minute", "1000 per hour"]

    # Creates, edits, deletes and logout
    WRITE = ["30 per minute", "200 per hour"]

    # Password checks, account creation and reset mail
    AUTH = ["10 per minute", "50 per hour"]

    # Skill import and record export
    BULK = ["5 per minute", "30 per hour"]


def _tier(limits: list[str]):
    return limiter.limit(";".join(limits))


# Decorated endpoints must take a 'request: Request' parameter
default_rate_limit = _tier(RateLimitTiers.DEFAULT)
write_rate_limit = _tier(RateLimitTiers.WRITE)
auth_rate_limit = _tier(RateLimitTiers.AUTH)
bulk_rate_limit = _tier(RateLimitTiers.BULK)
