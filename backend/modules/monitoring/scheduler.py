"""Health-check cycle: pick due monitors, probe them in batches, run the post-check pipeline."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError
from django.utils import timezone

from .dto import CycleSummary, MonitorCheckConfig, ProbeResult, Transition
from .exceptions import CycleError
from .incidents import detect_transition
from .models import HealthCheck, Monitor
from .notifications import dispatch, transition_events
from .prober import check_monitor

logger = logging.getLogger("monitors")
audit_logger = logging.getLogger("monitors.audit")
performance_logger = logging.getLogger("monitors.performance")

CYCLE_LOCK_KEY = "monitoring:health-check-cycle"


def is_monitor_due(monitor: Monitor, now: datetime) -> bool:
    if monitor.last_check_at is None:
        return True
    elapsed = (now - monitor.last_check_at).total_seconds()
    return elapsed >= monitor.check_interval_seconds


def collect_due_monitors(now: datetime) -> list[Monitor]:
    """Active, unpaused monitors whose interval has elapsed.

    Raises ``CycleError`` when the monitor list cannot be read.
    """

    try:
        monitors = list(
            Monitor.objects.filter(is_active=True, is_paused=False)
            .select_related("owner", "component", "component__status_page")
            .order_by("created_at", "id")
        )
    except DatabaseError as exc:
        logger.error("Failed to fetch monitors", extra={"error": str(exc)})
        raise CycleError("Failed to fetch monitors") from exc

    due = [monitor for monitor in monitors if is_monitor_due(monitor, now)]
    audit_logger.info(
        "Monitors selected for health check",
        extra={
            "active_monitors": len(monitors),
            "due_monitors": len(due),
            "timestamp": now.isoformat(),
        },
    )
    return due


def _batches(monitors: Sequence[Monitor], size: int):
    for start in range(0, len(monitors), size):
        yield monitors[start : start + size]


def _probe(monitor: Monitor) -> ProbeResult:
    return check_monitor(MonitorCheckConfig.from_model(monitor))


def _probe_batch(executor: ThreadPoolExecutor, batch: Sequence[Monitor]) -> list[ProbeResult | None]:
    futures = [executor.submit(_probe, monitor) for monitor in batch]
    results: list[ProbeResult | None] = []
    for monitor, future in zip(batch, futures):
        try:
            results.append(future.result())
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Unhandled error probing monitor",
                extra={
                    "monitor_id": str(monitor.id),
                    "monitor_name": monitor.name,
                    "error": str(exc),
                },
                exc_info=True,
            )
            results.append(None)
    return results


def record_check(monitor: Monitor, result: ProbeResult) -> None:
    """Persist the check row and the monitor's last-check fields.

    Write failures are logged; the caller carries on with the in-memory result.
    """

    checked_at = timezone.now()
    try:
        HealthCheck.objects.create(
            monitor=monitor,
            status=result.status,
            response_time_ms=result.response_time_ms,
            http_status=result.http_status,
            error_message=result.error_message,
            checked_at=checked_at,
        )
    except DatabaseError as exc:
        logger.error(
            "Failed to insert health check",
            extra={"monitor_id": str(monitor.id), "monitor_name": monitor.name, "error": str(exc)},
        )

    monitor.last_check_at = checked_at
    monitor.last_status = result.status
    monitor.last_response_time_ms = result.response_time_ms
    try:
        Monitor.objects.filter(pk=monitor.pk).update(
            last_check_at=checked_at,
            last_status=result.status,
            last_response_time_ms=result.response_time_ms,
            updated_at=checked_at,
        )
    except DatabaseError as exc:
        logger.error(
            "Failed to update monitor",
            extra={"monitor_id": str(monitor.id), "monitor_name": monitor.name, "error": str(exc)},
        )


def notify_transition(monitor: Monitor, transition: Transition) -> None:
    """Send the incident-level event, then the monitor-level one."""

    incident = transition.incident
    if incident is None:
        return
    for event in transition_events(transition.kind, incident, monitor):
        try:
            dispatch(monitor.owner, incident.status_page, event)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Failed to dispatch notifications",
                extra={
                    "monitor_id": str(monitor.id),
                    "monitor_name": monitor.name,
                    "event_type": event.type,
                    "error": str(exc),
                },
                exc_info=True,
            )


def process_monitor(monitor: Monitor, result: ProbeResult, summary: CycleSummary) -> None:
    """Post-check pipeline for one monitor: persist, detect transition, notify."""

    summary.record(result.status)
    logger.info(
        "Health check completed",
        extra={
            "monitor_id": str(monitor.id),
            "monitor_name": monitor.name,
            "status": str(result.status),
            "response_time_ms": result.response_time_ms,
            "error": result.error_message,
        },
    )

    record_check(monitor, result)

    transition = detect_transition(monitor, result.status)
    if transition.opened:
        summary.incidents_opened += 1
    elif transition.resolved:
        summary.incidents_resolved += 1
    else:
        return

    audit_logger.info(
        f"Incident {transition.kind} for monitor",
        extra={
            "monitor_id": str(monitor.id),
            "monitor_name": monitor.name,
            "incident_id": str(transition.incident.id) if transition.incident else None,
            "incident_title": transition.incident.title if transition.incident else None,
        },
    )
    notify_transition(monitor, transition)


def run_cycle(now: datetime | None = None, *, batch_size: int | None = None) -> CycleSummary:
    """Run one health-check cycle over every due monitor.

    Probes within a batch run concurrently; the next batch starts once the
    previous one has been fully processed. A failure while processing one
    monitor is logged and never affects its siblings.
    """

    now = now or timezone.now()
    batch_size = batch_size or settings.HEALTH_CHECK_BATCH_SIZE
    started = time.monotonic()
    summary = CycleSummary()

    monitors = collect_due_monitors(now)
    if monitors:
        with ThreadPoolExecutor(
            max_workers=batch_size, thread_name_prefix="pingwatch-probe"
        ) as executor:
            for batch in _batches(monitors, batch_size):
                results = _probe_batch(executor, batch)
                for monitor, result in zip(batch, results):
                    if result is None:
                        continue
                    try:
                        process_monitor(monitor, result, summary)
                    except Exception as exc:  # noqa: BLE001
                        logger.error(
                            "Unhandled error processing monitor",
                            extra={
                                "monitor_id": str(monitor.id),
                                "monitor_name": monitor.name,
                                "error": str(exc),
                            },
                            exc_info=True,
                        )

    duration_ms = (time.monotonic() - started) * 1000
    performance_logger.info(
        "Health check cycle finished",
        extra={"duration_ms": round(duration_ms, 2), "due_monitors": len(monitors)},
    )
    logger.info("Health check cycle complete", extra=summary.to_dict())
    return summary


def run_locked_cycle(now: datetime | None = None) -> CycleSummary:
    """Run a cycle unless another one holds the cycle lock.

    A skipped cycle reports zero counts with ``skipped`` set.
    """

    token = uuid.uuid4().hex
    if not cache.add(CYCLE_LOCK_KEY, token, timeout=settings.HEALTH_CHECK_CYCLE_LOCK_SECONDS):
        logger.warning("Health check cycle already running; skipping")
        return CycleSummary(skipped=True)

    try:
        return run_cycle(now)
    finally:
        if cache.get(CYCLE_LOCK_KEY) == token:
            cache.delete(CYCLE_LOCK_KEY)


__all__ = [
    "CYCLE_LOCK_KEY",
    "collect_due_monitors",
    "is_monitor_due",
    "notify_transition",
    "process_monitor",
    "record_check",
    "run_cycle",
    "run_locked_cycle",
]
