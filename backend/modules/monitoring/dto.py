"""Value objects passed between the prober, scheduler, incident engine and dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from datetime import timezone as dt_timezone
from typing import TYPE_CHECKING, Any

from django.utils import timezone

from .constants import DEFAULT_TIMEOUT_MS, HealthStatus

if TYPE_CHECKING:
    from .models import Incident, Monitor

DateTimeLike = datetime | None


def _format_datetime(value: DateTimeLike) -> str | None:
    """Serialize datetimes to ISO8601 strings compatible with DRF output."""

    if value is None:
        return None

    if timezone.is_naive(value):
        value = timezone.make_aware(value, dt_timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


@dataclass(slots=True, frozen=True)
class MonitorCheckConfig:
    """What the prober needs to know about a monitor. Detached from the ORM row."""

    url: str
    method: str = "GET"
    expected_status: int = 200
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    @classmethod
    def from_model(cls, monitor: Monitor) -> MonitorCheckConfig:
        return cls(
            url=monitor.url,
            method=monitor.method or "GET",
            expected_status=monitor.expected_status or 200,
            timeout_ms=monitor.timeout_ms or DEFAULT_TIMEOUT_MS,
        )


@dataclass(slots=True, frozen=True)
class ProbeResult:
    status: HealthStatus
    response_time_ms: int
    http_status: int | None = None
    error_message: str | None = None

    @property
    def is_failing(self) -> bool:
        return self.status != HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": str(self.status),
            "response_time_ms": self.response_time_ms,
            "http_status": self.http_status,
            "error_message": self.error_message,
        }


@dataclass(slots=True)
class CycleSummary:
    """Counters reported by one health-check cycle."""

    checked: int = 0
    healthy: int = 0
    degraded: int = 0
    down: int = 0
    incidents_opened: int = 0
    incidents_resolved: int = 0
    skipped: bool = False

    def record(self, status: HealthStatus) -> None:
        self.checked += 1
        if status == HealthStatus.HEALTHY:
            self.healthy += 1
        elif status == HealthStatus.DEGRADED:
            self.degraded += 1
        else:
            self.down += 1

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "checked": self.checked,
            "healthy": self.healthy,
            "degraded": self.degraded,
            "down": self.down,
            "incidents_opened": self.incidents_opened,
            "incidents_resolved": self.incidents_resolved,
        }
        if self.skipped:
            payload["skipped"] = True
        return payload


@dataclass(slots=True, frozen=True)
class Transition:
    """Outcome of feeding one new check result into the incident engine."""

    kind: str
    incident: Incident | None = None

    OPENED = "opened"
    RESOLVED = "resolved"
    UNCHANGED = "unchanged"

    @classmethod
    def unchanged(cls) -> Transition:
        return cls(kind=cls.UNCHANGED)

    @property
    def opened(self) -> bool:
        return self.kind == self.OPENED

    @property
    def resolved(self) -> bool:
        return self.kind == self.RESOLVED


@dataclass(slots=True, frozen=True)
class NotificationEvent:
    """Something worth telling channels and subscribers about."""

    type: str
    message: str
    status_page_name: str
    status_page_slug: str
    monitor_name: str | None = None
    incident: Incident | None = None
    monitor: Monitor | None = None
    timestamp: datetime = field(default_factory=timezone.now)

    @property
    def is_incident_event(self) -> bool:
        return self.type.startswith("incident_")

    def to_payload(self) -> dict[str, Any]:
        """JSON body posted to generic webhooks and snapshotted in the delivery log."""

        incident_payload = None
        if self.incident is not None:
            incident_payload = {
                "id": str(self.incident.id),
                "title": self.incident.title,
                "status": self.incident.status,
                "severity": self.incident.severity,
            }
        return {
            "event": self.type,
            "timestamp": _format_datetime(self.timestamp),
            "status_page": {
                "name": self.status_page_name,
                "slug": self.status_page_slug,
            },
            "incident": incident_payload,
            "monitor": {"name": self.monitor_name} if self.monitor_name else None,
            "message": self.message,
        }


@dataclass(slots=True)
class DispatchReport:
    sent: int = 0
    failed: int = 0
    subscribers_emailed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "sent": self.sent,
            "failed": self.failed,
            "subscribers_emailed": self.subscribers_emailed,
        }


@dataclass(slots=True, frozen=True)
class SweepResult:
    deleted: int
    retention_days: int
    cutoff_date: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "deleted": self.deleted,
            "retention_days": self.retention_days,
            "cutoff_date": _format_datetime(self.cutoff_date),
        }


@dataclass(slots=True, frozen=True)
class DailyUptime:
    date: str
    uptime_percentage: float
    total_checks: int
    successful_checks: int


@dataclass(slots=True, frozen=True)
class UptimeStats:
    uptime_percentage: float
    avg_response_time_ms: int
    total_checks: int
    incidents_count: int = 0
    daily: tuple[DailyUptime, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "uptime_percentage": self.uptime_percentage,
            "avg_response_time_ms": self.avg_response_time_ms,
            "total_checks": self.total_checks,
            "incidents_count": self.incidents_count,
            "daily": [
                {
                    "date": day.date,
                    "uptime_percentage": day.uptime_percentage,
                    "total_checks": day.total_checks,
                    "successful_checks": day.successful_checks,
                }
                for day in self.daily
            ],
        }


__all__ = [
    "CycleSummary",
    "DailyUptime",
    "DispatchReport",
    "MonitorCheckConfig",
    "NotificationEvent",
    "ProbeResult",
    "SweepResult",
    "Transition",
    "UptimeStats",
]
