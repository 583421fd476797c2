"""Product analytics."""

from src.skills_audit.services.analytics.posthog import (
    AnalyticsEvents,
    PostHogService,
    get_analytics_service,
)

__all__ = ["AnalyticsEvents", "PostHogService", "get_analytics_service"]
