"""Incident state engine.

Turns the stream of per-check results for a monitor into incident open and
resolve transitions. Two consecutive failing checks after a healthy one open an
incident on the monitor's component; the next healthy check resolves whichever
incident is open on that component and puts it back to operational.
"""

from __future__ import annotations

import logging
from datetime import datetime

from django.db import transaction
from django.utils import timezone

from .constants import (
    FAILING_STATUSES,
    INCIDENT_THRESHOLD,
    ComponentStatus,
    HealthStatus,
    IncidentOrigin,
    IncidentSeverity,
    IncidentStatus,
)
from .dto import Transition
from .models import Component, HealthCheck, Incident, IncidentUpdate, Monitor

logger = logging.getLogger("monitors")
audit_logger = logging.getLogger("monitors.audit")

RECOVERY_MESSAGE = "Automated: Service has recovered and is operating normally."


def recent_statuses(monitor: Monitor, limit: int = INCIDENT_THRESHOLD + 1) -> list[str]:
    """Statuses of the ``limit`` most recent checks, newest first."""

    return list(
        HealthCheck.objects.filter(monitor=monitor)
        .order_by("-checked_at", "-id")
        .values_list("status", flat=True)[:limit]
    )


def detect_transition(
    monitor: Monitor,
    new_status: str,
    *,
    now: datetime | None = None,
) -> Transition:
    """Decide whether the check just persisted for ``monitor`` opens or resolves an incident.

    Must be called after the new HealthCheck row is written, because the
    decision reads it back as the newest entry of the history window.
    """

    now = now or timezone.now()
    new_status = str(new_status)
    history = recent_statuses(monitor)
    if len(history) < INCIDENT_THRESHOLD:
        return Transition.unchanged()

    consecutive_failures = all(
        status in FAILING_STATUSES for status in history[:INCIDENT_THRESHOLD]
    )
    # With exactly two checks in the window there is no earlier check to
    # compare against, so the monitor counts as previously healthy.
    was_healthy_before = (
        len(history) <= INCIDENT_THRESHOLD
        or history[INCIDENT_THRESHOLD] == HealthStatus.HEALTHY
    )

    if monitor.component_id is None:
        return Transition.unchanged()

    if consecutive_failures and was_healthy_before:
        incident = _open_incident(monitor, new_status, now)
        if incident is not None:
            return Transition(kind=Transition.OPENED, incident=incident)

    # The history can lag behind new_status when the check insert failed.
    if new_status == HealthStatus.HEALTHY:
        incident = _resolve_open_incident(monitor, now)
        if incident is not None:
            return Transition(kind=Transition.RESOLVED, incident=incident)

    return Transition.unchanged()


def _open_incident(monitor: Monitor, new_status: str, now: datetime) -> Incident | None:
    with transaction.atomic():
        component = (
            Component.objects.select_for_update()
            .select_related("status_page")
            .get(pk=monitor.component_id)
        )
        already_open = (
            Incident.objects.filter(affected_components=component)
            .exclude(status=IncidentStatus.RESOLVED)
            .exists()
        )
        if already_open:
            logger.debug(
                "Open incident already covers component",
                extra={"monitor_id": str(monitor.id), "component_id": str(component.id)},
            )
            return None

        is_down = new_status == HealthStatus.DOWN
        incident = Incident.objects.create(
            status_page=component.status_page,
            owner_id=monitor.owner_id,
            title=f"{monitor.name} is {new_status}",
            status=IncidentStatus.INVESTIGATING,
            severity=IncidentSeverity.MAJOR if is_down else IncidentSeverity.MINOR,
            message=f"Automated: {monitor.name} detected as {new_status}",
            started_at=now,
            created_by=IncidentOrigin.AUTO,
        )
        incident.affected_components.add(component)
        IncidentUpdate.objects.create(
            incident=incident,
            status=IncidentStatus.INVESTIGATING,
            message=incident.message,
        )

        component.status = ComponentStatus.MAJOR_OUTAGE if is_down else ComponentStatus.DEGRADED
        component.save(update_fields=["status", "updated_at"])

    audit_logger.info(
        "Incident opened automatically",
        extra={
            "incident_id": str(incident.id),
            "monitor_id": str(monitor.id),
            "component_id": str(component.id),
            "status_page": component.status_page.slug,
            "severity": incident.severity,
            "component_status": component.status,
        },
    )
    return incident


def _resolve_open_incident(monitor: Monitor, now: datetime) -> Incident | None:
    with transaction.atomic():
        incident = (
            Incident.objects.select_for_update()
            .filter(affected_components__id=monitor.component_id)
            .exclude(status=IncidentStatus.RESOLVED)
            .order_by("-started_at")
            .first()
        )
        if incident is None:
            return None

        IncidentUpdate.objects.create(
            incident=incident,
            status=IncidentStatus.RESOLVED,
            message=RECOVERY_MESSAGE,
        )
        incident.status = IncidentStatus.RESOLVED
        incident.resolved_at = now
        incident.save(update_fields=["status", "resolved_at", "updated_at"])

        Component.objects.filter(pk=monitor.component_id).update(
            status=ComponentStatus.OPERATIONAL,
            updated_at=now,
        )

    audit_logger.info(
        "Incident resolved automatically",
        extra={
            "incident_id": str(incident.id),
            "created_by": incident.created_by,
            "monitor_id": str(monitor.id),
            "component_id": str(monitor.component_id),
            "duration_seconds": int((now - incident.started_at).total_seconds()),
        },
    )
    return incident


def post_incident_update(
    incident: Incident,
    *,
    status: str,
    message: str,
    author=None,
    now: datetime | None = None,
) -> IncidentUpdate:
    """Append a manual timeline entry and move the incident to ``status``.

    Moving to ``resolved`` stamps ``resolved_at`` and returns every affected
    component to operational.
    """

    if status not in IncidentStatus.values:
        raise ValueError(f"Unknown incident status: {status!r}")

    now = now or timezone.now()
    with transaction.atomic():
        update = IncidentUpdate.objects.create(
            incident=incident,
            status=status,
            message=message,
            author=author,
        )
        incident.status = status
        update_fields = ["status", "updated_at"]
        if status == IncidentStatus.RESOLVED:
            incident.resolved_at = now
            update_fields.append("resolved_at")
            incident.affected_components.update(
                status=ComponentStatus.OPERATIONAL,
                updated_at=now,
            )
        incident.save(update_fields=update_fields)

    audit_logger.info(
        "Incident updated",
        extra={
            "incident_id": str(incident.id),
            "status": status,
            "author_id": getattr(author, "id", None),
        },
    )
    return update


__all__ = [
    "RECOVERY_MESSAGE",
    "detect_transition",
    "post_incident_update",
    "recent_statuses",
]
