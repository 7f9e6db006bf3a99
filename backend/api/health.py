"""Health check and metrics endpoints for load balancers and dashboards."""

import logging
from datetime import timedelta

from django.conf import settings
from django.core.cache import cache
from django.db import connection
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from api.logging_utils import sanitize_log_value

logger = logging.getLogger("api.health")

_CACHE_PROBE_KEY = "pingwatch:health-probe"


def _check_database() -> str:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except Exception as exc:  # noqa: BLE001
        logger.error("Health check database failure", extra={"error": str(exc)})
        return "error"
    return "ok"


def _check_cache() -> str:
    try:
        cache.set(_CACHE_PROBE_KEY, "ok", timeout=5)
        if cache.get(_CACHE_PROBE_KEY) != "ok":
            return "error"
    except Exception as exc:  # noqa: BLE001
        logger.error("Health check cache failure", extra={"error": str(exc)})
        return "error"
    return "ok"


def _log_invocation(request, message: str) -> None:
    logger.info(
        message,
        extra={
            "remote_addr": request.META.get("REMOTE_ADDR", "unknown"),
            "path": request.path,
        },
    )


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """
    Lightweight liveness probe.

    Returns 200 when the database and cache answer, 503 otherwise.
    """
    _log_invocation(request, "Health check invoked")

    checks = {
        "status": "healthy",
        "timestamp": timezone.now().isoformat(),
        "database": _check_database(),
        "cache": _check_cache(),
    }
    if "error" in (checks["database"], checks["cache"]):
        checks["status"] = "unhealthy"

    http_status = (
        status.HTTP_200_OK if checks["status"] == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    logger.info(
        "Health check completed",
        extra={"status_code": http_status, "result": sanitize_log_value(checks)},
    )
    return Response(checks, status=http_status)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def readiness_check(request):
    """
    Readiness probe for orchestrators.

    Adds the Celery broker and pending migrations to the liveness checks.
    """
    _log_invocation(request, "Readiness check invoked")

    checks = {
        "status": "ready",
        "timestamp": timezone.now().isoformat(),
        "database": _check_database(),
    }
    if checks["database"] == "error":
        checks["status"] = "not_ready"

    try:
        from app.celery import celery_app

        celery_app.connection().ensure_connection(max_retries=1)
        checks["broker"] = "ok"
    except Exception as exc:  # noqa: BLE001
        logger.error("Readiness check broker failure", extra={"error": str(exc)})
        checks["broker"] = "error"
        checks["status"] = "not_ready"

    try:
        from django.db.migrations.executor import MigrationExecutor

        executor = MigrationExecutor(connection)
        plan = executor.migration_plan(executor.loader.graph.leaf_nodes())
        if plan:
            checks["migrations"] = f"{len(plan)} unapplied"
            checks["status"] = "not_ready"
        else:
            checks["migrations"] = "up to date"
    except Exception as exc:  # noqa: BLE001
        logger.error("Readiness check migrations failure", extra={"error": str(exc)})
        checks["migrations"] = "error"
        checks["status"] = "not_ready"

    http_status = (
        status.HTTP_200_OK if checks["status"] == "ready" else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    logger.info(
        "Readiness check completed",
        extra={"status_code": http_status, "result": sanitize_log_value(checks)},
    )
    return Response(checks, status=http_status)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def metrics(request):
    """Snapshot of monitor, check, incident and delivery counts."""
    from modules.monitoring.constants import DeliveryStatus, HealthStatus, IncidentStatus
    from modules.monitoring.models import HealthCheck, Incident, Monitor, NotificationLog

    _log_invocation(request, "Metrics snapshot requested")

    now = timezone.now()
    metrics_data = {
        "timestamp": now.isoformat(),
        "environment": getattr(settings, "SENTRY_ENVIRONMENT", "unknown"),
        "debug": settings.DEBUG,
    }

    try:
        monitors = Monitor.objects.all()
        schedulable = monitors.filter(is_active=True, is_paused=False)
        metrics_data["monitors"] = {
            "total": monitors.count(),
            "active": schedulable.count(),
            "healthy": schedulable.filter(last_status=HealthStatus.HEALTHY).count(),
            "degraded": schedulable.filter(last_status=HealthStatus.DEGRADED).count(),
            "down": schedulable.filter(last_status=HealthStatus.DOWN).count(),
        }
        metrics_data["activity"] = {
            "checks_last_hour": HealthCheck.objects.filter(
                checked_at__gte=now - timedelta(hours=1)
            ).count(),
            "open_incidents": Incident.objects.exclude(status=IncidentStatus.RESOLVED).count(),
            "failed_notifications_last_day": NotificationLog.objects.filter(
                status=DeliveryStatus.FAILED,
                sent_at__gte=now - timedelta(days=1),
            ).count(),
        }
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to fetch monitoring metrics", extra={"error": str(exc)})
        metrics_data["monitors"] = {"error": "unavailable"}

    logger.info("Metrics snapshot completed", extra={"result": sanitize_log_value(metrics_data)})
    return Response(metrics_data)
