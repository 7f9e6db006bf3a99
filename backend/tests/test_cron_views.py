"""
Tests for the cron trigger endpoints.

Both routes require ``Authorization: Bearer <CRON_SECRET>`` and answer with a
JSON summary or a fixed ``{"error": ...}`` body.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from modules.monitoring.dto import ProbeResult, SweepResult
from modules.monitoring.exceptions import CycleError, RetentionError
from modules.monitoring.models import HealthCheck
from rest_framework import status

pytestmark = pytest.mark.django_db

AUTH = {"HTTP_AUTHORIZATION": "Bearer test-cron-secret"}


@pytest.fixture
def mock_probe():
    with patch("modules.monitoring.scheduler.check_monitor") as mocked:
        mocked.return_value = ProbeResult(status="healthy", response_time_ms=42, http_status=200)
        yield mocked


class TestCronAuthorization:
    @pytest.mark.parametrize("route", ["cron_check", "cron_cleanup"])
    def test_missing_header_is_rejected(self, api_client, route):
        response = api_client.get(reverse(route))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "Unauthorized"}

    @pytest.mark.parametrize(
        "header",
        ["Bearer wrong-secret", "test-cron-secret", "Bearer  test-cron-secret", "Basic dGVzdA=="],
    )
    def test_wrong_secret_is_rejected(self, api_client, header, mock_probe):
        response = api_client.get(reverse("cron_check"), HTTP_AUTHORIZATION=header)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        mock_probe.assert_not_called()

    @override_settings(CRON_SECRET="")
    def test_unset_secret_rejects_everything(self, api_client):
        response = api_client.get(reverse("cron_check"), HTTP_AUTHORIZATION="Bearer ")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_rejection_is_logged(self, api_client, capture_logs):
        with capture_logs("api.cron") as caplog:
            api_client.get(reverse("cron_check"), HTTP_AUTHORIZATION="Bearer nope")

        assert any(r.getMessage() == "Rejected cron trigger" for r in caplog.records)


class TestCronCheck:
    def test_runs_cycle_and_returns_summary(self, api_client, monitor, mock_probe):
        response = api_client.get(reverse("cron_check"), **AUTH)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "checked": 1,
            "healthy": 1,
            "degraded": 0,
            "down": 0,
            "incidents_opened": 0,
            "incidents_resolved": 0,
        }
        assert HealthCheck.objects.filter(monitor=monitor).count() == 1

    def test_cycle_failure_returns_500(self, api_client):
        with patch(
            "modules.monitoring.views.run_locked_cycle",
            side_effect=CycleError("Failed to fetch monitors"),
        ):
            response = api_client.get(reverse("cron_check"), **AUTH)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Failed to fetch monitors"}


class TestCronCleanup:
    def test_returns_sweep_result(self, api_client, monitor, check_factory):
        check_factory(monitor, checked_at=timezone.now() - timedelta(days=120))

        response = api_client.get(reverse("cron_cleanup"), **AUTH)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["deleted"] == 1
        assert body["retention_days"] == 90
        assert body["cutoff_date"].endswith("Z")

    def test_passes_through_sweep_result(self, api_client):
        result = SweepResult(deleted=7, retention_days=90, cutoff_date=timezone.now())

        with patch("modules.monitoring.views.sweep", return_value=result):
            response = api_client.get(reverse("cron_cleanup"), **AUTH)

        assert response.json()["deleted"] == 7

    def test_sweep_failure_returns_500(self, api_client):
        with patch("modules.monitoring.views.sweep", side_effect=RetentionError("locked")):
            response = api_client.get(reverse("cron_cleanup"), **AUTH)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Cleanup failed"}


class TestCronThrottling:
    def test_excess_triggers_are_throttled(self, api_client, mock_probe):
        from api.throttles import CronRateThrottle

        with patch.object(CronRateThrottle, "THROTTLE_RATES", {"cron": "2/min"}):
            codes = [api_client.get(reverse("cron_check"), **AUTH).status_code for _ in range(3)]

        assert codes == [200, 200, 429]

    @override_settings(API_RATE_LIMITING_ENABLED=False)
    def test_throttling_can_be_disabled(self, api_client, mock_probe):
        from api.throttles import CronRateThrottle

        with patch.object(CronRateThrottle, "THROTTLE_RATES", {"cron": "1/min"}):
            codes = [api_client.get(reverse("cron_check"), **AUTH).status_code for _ in range(3)]

        assert codes == [200, 200, 200]
