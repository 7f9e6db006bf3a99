"""Uptime statistics derived from stored health checks."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from .constants import ComponentStatus, HealthStatus
from .dto import DailyUptime, UptimeStats
from .models import HealthCheck, Incident, Monitor


def _percentage(part: int, total: int) -> float:
    value = Decimal(part) * 100 / Decimal(total)
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _count_incidents(monitor: Monitor, since: datetime) -> int:
    if monitor.component_id is None:
        return 0
    return (
        Incident.objects.filter(
            affected_components__id=monitor.component_id,
            started_at__gte=since,
        )
        .distinct()
        .count()
    )


def calculate_uptime_stats(
    monitor: Monitor,
    days: int = 90,
    now: datetime | None = None,
) -> UptimeStats:
    """Uptime over the last ``days`` days; 100% when there are no checks yet."""

    now = now or timezone.now()
    since = now - timedelta(days=days)
    checks = list(
        HealthCheck.objects.filter(monitor=monitor, checked_at__gte=since)
        .order_by("checked_at", "id")
        .values_list("status", "response_time_ms", "checked_at")
    )
    incidents_count = _count_incidents(monitor, since)
    if not checks:
        return UptimeStats(
            uptime_percentage=100.0,
            avg_response_time_ms=0,
            total_checks=0,
            incidents_count=incidents_count,
        )

    healthy = sum(1 for status, _, _ in checks if status == HealthStatus.HEALTHY)
    latencies = [latency for _, latency, _ in checks if latency]
    avg_latency = 0
    if latencies:
        avg_latency = int(
            (Decimal(sum(latencies)) / len(latencies)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        )

    per_day: OrderedDict[str, list[int]] = OrderedDict()
    for status, _, checked_at in checks:
        day = checked_at.astimezone(dt_timezone.utc).date().isoformat()
        bucket = per_day.setdefault(day, [0, 0])
        bucket[0] += 1
        if status == HealthStatus.HEALTHY:
            bucket[1] += 1

    return UptimeStats(
        uptime_percentage=_percentage(healthy, len(checks)),
        avg_response_time_ms=avg_latency,
        total_checks=len(checks),
        incidents_count=incidents_count,
        daily=tuple(
            DailyUptime(
                date=day,
                uptime_percentage=_percentage(ok, total),
                total_checks=total,
                successful_checks=ok,
            )
            for day, (total, ok) in per_day.items()
        ),
    )


def calculate_overall_status(component_statuses: Iterable[str]) -> str:
    """Roll component statuses up into one page-level health status."""

    statuses = {str(status) for status in component_statuses}
    if ComponentStatus.MAJOR_OUTAGE.value in statuses:
        return HealthStatus.DOWN.value
    if ComponentStatus.DEGRADED.value in statuses or ComponentStatus.MAINTENANCE.value in statuses:
        return HealthStatus.DEGRADED.value
    return HealthStatus.HEALTHY.value


__all__ = ["calculate_overall_status", "calculate_uptime_stats"]
