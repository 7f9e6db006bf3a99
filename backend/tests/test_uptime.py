"""Tests for uptime statistics and page-level status roll-up."""

from __future__ import annotations

from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

import pytest
from modules.monitoring.constants import ComponentStatus, IncidentOrigin
from modules.monitoring.models import Incident
from modules.monitoring.uptime import calculate_overall_status, calculate_uptime_stats

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=dt_timezone.utc)


@pytest.mark.django_db
def test_no_checks_reports_full_uptime(monitor):
    stats = calculate_uptime_stats(monitor, now=NOW)

    assert stats.uptime_percentage == 100.0
    assert stats.total_checks == 0
    assert stats.avg_response_time_ms == 0
    assert stats.daily == ()


@pytest.mark.django_db
def test_uptime_rounds_to_two_decimals(monitor, check_factory):
    for offset in range(2):
        check_factory(monitor, status="healthy", checked_at=NOW - timedelta(hours=offset + 1))
    check_factory(monitor, status="down", checked_at=NOW - timedelta(hours=3))

    stats = calculate_uptime_stats(monitor, now=NOW)

    assert stats.total_checks == 3
    assert stats.uptime_percentage == 66.67


@pytest.mark.django_db
def test_degraded_checks_count_against_uptime(monitor, check_factory):
    check_factory(monitor, status="healthy", checked_at=NOW - timedelta(minutes=5))
    check_factory(monitor, status="degraded", checked_at=NOW - timedelta(minutes=10))

    assert calculate_uptime_stats(monitor, now=NOW).uptime_percentage == 50.0


@pytest.mark.django_db
def test_average_latency_ignores_failed_probes(monitor, check_factory):
    check_factory(monitor, status="healthy", response_time_ms=100, checked_at=NOW - timedelta(minutes=1))
    check_factory(monitor, status="healthy", response_time_ms=201, checked_at=NOW - timedelta(minutes=2))
    check_factory(monitor, status="down", checked_at=NOW - timedelta(minutes=3))

    stats = calculate_uptime_stats(monitor, now=NOW)

    assert stats.avg_response_time_ms == 151


@pytest.mark.django_db
def test_checks_outside_window_are_ignored(monitor, check_factory):
    check_factory(monitor, status="down", checked_at=NOW - timedelta(days=31))
    check_factory(monitor, status="healthy", checked_at=NOW - timedelta(days=1))

    stats = calculate_uptime_stats(monitor, days=30, now=NOW)

    assert stats.total_checks == 1
    assert stats.uptime_percentage == 100.0


@pytest.mark.django_db
def test_daily_breakdown_groups_by_utc_date(monitor, check_factory):
    check_factory(monitor, status="healthy", checked_at=datetime(2026, 3, 9, 23, 30, tzinfo=dt_timezone.utc))
    check_factory(monitor, status="down", checked_at=datetime(2026, 3, 9, 1, 0, tzinfo=dt_timezone.utc))
    check_factory(monitor, status="healthy", checked_at=datetime(2026, 3, 10, 0, 30, tzinfo=dt_timezone.utc))

    stats = calculate_uptime_stats(monitor, now=NOW)

    assert [(day.date, day.total_checks, day.successful_checks) for day in stats.daily] == [
        ("2026-03-09", 2, 1),
        ("2026-03-10", 1, 1),
    ]
    assert stats.daily[0].uptime_percentage == 50.0


@pytest.mark.django_db
def test_incidents_are_counted_even_without_checks(monitor, component, owner):
    for days_ago in (2, 40, 120):
        incident = Incident.objects.create(
            status_page=component.status_page,
            owner=owner,
            title=f"Outage {days_ago}",
            started_at=NOW - timedelta(days=days_ago),
            created_by=IncidentOrigin.AUTO,
        )
        incident.affected_components.add(component)

    stats = calculate_uptime_stats(monitor, days=90, now=NOW)

    assert stats.incidents_count == 2
    assert stats.total_checks == 0
    assert stats.uptime_percentage == 100.0


@pytest.mark.parametrize(
    ("statuses", "expected"),
    [
        ([], "healthy"),
        ([ComponentStatus.OPERATIONAL, ComponentStatus.OPERATIONAL], "healthy"),
        ([ComponentStatus.OPERATIONAL, ComponentStatus.DEGRADED], "degraded"),
        (["maintenance"], "degraded"),
        ([ComponentStatus.DEGRADED, ComponentStatus.MAJOR_OUTAGE], "down"),
    ],
)
def test_overall_status_rolls_up_worst_component(statuses, expected):
    assert calculate_overall_status(statuses) == expected
