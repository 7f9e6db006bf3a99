"""Celery tasks driving the health-check cycle and the retention sweep from beat."""

from __future__ import annotations

import logging

from celery import shared_task
from django.utils import timezone

from .retention import sweep
from .scheduler import run_locked_cycle

logger = logging.getLogger("monitors")
performance_logger = logging.getLogger("monitors.performance")


@shared_task(bind=True, name="monitoring.tasks.run_health_check_cycle")
def run_health_check_cycle(self) -> dict:
    """Probe every due monitor once; returns the cycle summary."""

    started_at = timezone.now()
    summary = run_locked_cycle(started_at)
    logger.info(
        "Health check task finished",
        extra={
            "task_id": getattr(self.request, "id", None),
            "run_at": started_at.isoformat(),
            **summary.to_dict(),
        },
    )
    return summary.to_dict()


@shared_task(bind=True, name="monitoring.tasks.sweep_health_checks")
def sweep_health_checks(self) -> dict:
    """Delete health checks past the retention window."""

    result = sweep(timezone.now())
    performance_logger.info(
        "Retention sweep task finished",
        extra={"task_id": getattr(self.request, "id", None), **result.to_dict()},
    )
    return result.to_dict()


__all__ = ["run_health_check_cycle", "sweep_health_checks"]
