"""Retention sweep for the append-only health-check history."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from .dto import SweepResult
from .exceptions import RetentionError
from .models import HealthCheck

logger = logging.getLogger("monitors")


def sweep(now: datetime | None = None, *, retention_days: int | None = None) -> SweepResult:
    """Delete health checks strictly older than the retention window.

    A check recorded exactly ``retention_days`` ago is kept.
    """

    now = now or timezone.now()
    retention_days = retention_days or settings.HEALTH_CHECK_RETENTION_DAYS
    cutoff = now - timedelta(days=retention_days)

    logger.info(
        "Deleting expired health checks",
        extra={"cutoff_date": cutoff.isoformat(), "retention_days": retention_days},
    )
    try:
        deleted, _ = HealthCheck.objects.filter(checked_at__lt=cutoff).delete()
    except DatabaseError as exc:
        logger.error(
            "Failed to delete expired health checks",
            extra={"cutoff_date": cutoff.isoformat(), "error": str(exc)},
        )
        raise RetentionError(str(exc)) from exc

    logger.info(
        "Retention sweep finished",
        extra={"deleted": deleted, "retention_days": retention_days},
    )
    return SweepResult(deleted=deleted, retention_days=retention_days, cutoff_date=cutoff)


__all__ = ["sweep"]
