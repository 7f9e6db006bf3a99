"""
Custom exceptions for the PingWatch API.

Provides standardized error responses without leaking internal details.
"""

from rest_framework.exceptions import APIException


class BasePingWatchException(APIException):
    """Base for API-facing errors; keeps the response format consistent."""

    status_code = 500
    default_detail = "An error occurred. Please try again later."
    default_code = "error"


class CronUnauthorizedError(BasePingWatchException):
    """
    Raised when a cron trigger presents a missing or wrong bearer secret.

    The detail is fixed so callers cannot tell which part of the check failed.
    """

    status_code = 401
    default_detail = "Unauthorized"
    default_code = "unauthorized"


class MonitorFetchError(BasePingWatchException):
    """Raised when the monitor list for a health-check cycle cannot be read."""

    status_code = 500
    default_detail = "Failed to fetch monitors"
    default_code = "monitor_fetch_failed"


class CleanupFailedError(BasePingWatchException):
    """Raised when the retention sweep cannot delete expired health checks."""

    status_code = 500
    default_detail = "Cleanup failed"
    default_code = "cleanup_failed"

