"""PostHog analytics service for authentication events."""

import logging
from functools import lru_cache

import posthog

from src.skills_audit.config import settings

logger = logging.getLogger(__name__)


class AnalyticsEvents:
    """Event names sent to PostHog."""

    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    USER_REGISTERED = "user_registered"
    REGISTRATION_FAILED = "registration_failed"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    LOGGED_OUT = "logged_out"


class PostHogService:
    """Service for tracking analytics events via PostHog."""

    def __init__(self) -> None:
        """Initialize PostHog service. Tracking is a no-op without an API key."""
        self.enabled = bool(settings.posthog_api_key)
        if self.enabled:
            posthog.api_key = settings.posthog_api_key
            posthog.host = settings.posthog_host

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Track an event.

        Args:
            distinct_id: User id, or the submitted email for anonymous attempts
            event: Event name from ``AnalyticsEvents``
            properties: Optional event properties

        Example:
            >>> service = PostHogService()
            >>> service.capture("user-123", AnalyticsEvents.LOGIN_SUCCEEDED, {"role": "employee"})
        """
        if not self.enabled:
            return

        try:
            posthog.capture(distinct_id=distinct_id, event=event, properties=properties or {})
        except Exception as e:
            logger.warning(f"Failed to capture analytics event {event}: {e}")


@lru_cache
def get_analytics_service() -> PostHogService:
    return PostHogService()
