"""Tests for the health-check retention sweep."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.utils import timezone
from modules.monitoring.exceptions import RetentionError
from modules.monitoring.models import HealthCheck
from modules.monitoring.retention import sweep

pytestmark = pytest.mark.django_db


def test_sweep_deletes_only_checks_older_than_window(monitor, check_factory):
    now = timezone.now()
    kept_recent = check_factory(monitor, checked_at=now - timedelta(days=1))
    kept_edge = check_factory(monitor, checked_at=now - timedelta(days=90))
    check_factory(monitor, checked_at=now - timedelta(days=91))
    check_factory(monitor, status="down", checked_at=now - timedelta(days=400))

    result = sweep(now)

    assert result.deleted == 2
    assert result.retention_days == 90
    assert result.cutoff_date == now - timedelta(days=90)
    assert set(HealthCheck.objects.values_list("pk", flat=True)) == {kept_recent.pk, kept_edge.pk}


def test_sweep_honours_custom_retention(monitor, check_factory):
    now = timezone.now()
    check_factory(monitor, checked_at=now - timedelta(days=8))
    check_factory(monitor, checked_at=now - timedelta(days=2))

    result = sweep(now, retention_days=7)

    assert result.deleted == 1
    assert HealthCheck.objects.count() == 1


def test_sweep_result_serializes_for_cron_response(monitor, check_factory):
    result = sweep(timezone.now())

    payload = result.to_dict()
    assert payload["deleted"] == 0
    assert payload["retention_days"] == 90
    assert payload["cutoff_date"].endswith("Z")


def test_sweep_wraps_database_errors():
    with patch(
        "modules.monitoring.retention.HealthCheck.objects.filter",
        side_effect=DatabaseError("locked"),
    ):
        with pytest.raises(RetentionError):
            sweep(timezone.now())
