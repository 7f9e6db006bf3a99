"""
Throttling classes for the cron triggers and the account API.

Rates live in ``REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']``.
"""

from django.conf import settings
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle


class RateLimitingToggleMixin:
    """Bypass throttles entirely when rate limiting is disabled in settings."""

    @staticmethod
    def _is_enabled() -> bool:
        return getattr(settings, "API_RATE_LIMITING_ENABLED", True)

    def allow_request(self, request, view):  # type: ignore[override]
        if not self._is_enabled():
            return True
        return super().allow_request(request, view)


class CronRateThrottle(RateLimitingToggleMixin, AnonRateThrottle):
    """Per-IP limit for authorized calls to the cron trigger endpoints."""

    scope = "cron"


class AuthenticatedUserRateThrottle(RateLimitingToggleMixin, UserRateThrottle):
    """Per-account limit for the monitor, channel and incident endpoints."""

    scope = "user"
