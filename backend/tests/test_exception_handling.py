"""
Tests for custom exception handling and error sanitization.

Verifies that:
- PingWatch errors render as a flat ``{"error": ...}`` body
- Database errors don't expose schema details
- Validation and throttle errors pass through untouched
"""

from unittest.mock import MagicMock

from django.db import DatabaseError
from django.test import TestCase, override_settings
from rest_framework.exceptions import Throttled, ValidationError
from rest_framework.test import APIRequestFactory

from api.exception_handler import custom_exception_handler
from api.exceptions import (
    CleanupFailedError,
    CronUnauthorizedError,
    MonitorFetchError,
)


class ExceptionHandlerTests(TestCase):
    """Test custom exception handler behavior."""

    def setUp(self):
        self.factory = APIRequestFactory()

    def _context(self, view_name="CronCheckView", path="/cron/check"):
        return {
            "view": MagicMock(__class__=MagicMock(__name__=view_name)),
            "request": self.factory.get(path),
        }

    @override_settings(DEBUG=False)
    def test_cron_errors_render_flat_error_body(self):
        for exc, code, message in (
            (CronUnauthorizedError(), 401, "Unauthorized"),
            (MonitorFetchError(), 500, "Failed to fetch monitors"),
            (CleanupFailedError(), 500, "Cleanup failed"),
        ):
            response = custom_exception_handler(exc, self._context())

            self.assertEqual(response.status_code, code)
            self.assertEqual(response.data, {"error": message})

    @override_settings(DEBUG=False)
    def test_production_mode_sanitizes_generic_errors(self):
        exc = ValueError("Internal connection string: postgresql://user:pass@db:5432")

        response = custom_exception_handler(exc, self._context("MonitorViewSet", "/api/monitors/"))

        self.assertEqual(response.status_code, 500)
        self.assertNotIn("postgresql", str(response.data))
        self.assertEqual(response.data["error"]["code"], "internal_server_error")

    @override_settings(DEBUG=False)
    def test_database_errors_hide_schema(self):
        exc = DatabaseError('relation "monitoring_healthcheck" does not exist')

        response = custom_exception_handler(exc, self._context())

        self.assertEqual(response.status_code, 500)
        self.assertNotIn("monitoring_healthcheck", str(response.data))
        self.assertEqual(response.data["error"]["code"], "database_error")

    @override_settings(DEBUG=False)
    def test_database_errors_are_detected_by_type(self):
        exc = DatabaseError("could not connect to server: Connection refused")

        response = custom_exception_handler(exc, self._context())

        self.assertEqual(response.data["error"]["code"], "database_error")

    @override_settings(DEBUG=False)
    def test_production_mode_allows_validation_errors(self):
        exc = ValidationError({"url": ["Only HTTP and HTTPS protocols are supported."]})

        response = custom_exception_handler(exc, self._context("MonitorViewSet", "/api/monitors/"))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            str(response.data["url"][0]), "Only HTTP and HTTPS protocols are supported."
        )

    @override_settings(DEBUG=False)
    def test_production_mode_allows_throttle_errors(self):
        response = custom_exception_handler(Throttled(wait=60), self._context())

        self.assertEqual(response.status_code, 429)
        self.assertIn("detail", response.data)


class CustomExceptionTests(TestCase):
    """Test custom exception classes."""

    def test_unauthorized_does_not_say_why(self):
        exc = CronUnauthorizedError()
        self.assertEqual(exc.status_code, 401)
        self.assertEqual(str(exc.detail), "Unauthorized")
        self.assertNotIn("secret", str(exc.detail).lower())
