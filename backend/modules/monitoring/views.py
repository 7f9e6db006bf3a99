"""Cron triggers plus the account-scoped monitor, channel and incident endpoints."""

from __future__ import annotations

import hmac
import logging

from api.exceptions import CleanupFailedError, CronUnauthorizedError, MonitorFetchError
from api.throttles import AuthenticatedUserRateThrottle, CronRateThrottle
from django.conf import settings
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import CycleError, RetentionError
from .incidents import post_incident_update
from .notifications import send_test_notification
from .retention import sweep
from .scheduler import run_locked_cycle
from .serializers import (
    IncidentUpdateSerializer,
    MonitorSerializer,
    NotificationChannelSerializer,
    UptimeQuerySerializer,
)
from .service import channel_service, incidents_for_request, monitor_service
from .uptime import calculate_uptime_stats

logger = logging.getLogger("api.cron")


def has_valid_cron_secret(request) -> bool:
    """Constant-time check of ``Authorization: Bearer <CRON_SECRET>``.

    An unset secret never matches.
    """

    secret = getattr(settings, "CRON_SECRET", "") or ""
    if not secret:
        return False
    header = request.META.get("HTTP_AUTHORIZATION", "")
    return hmac.compare_digest(header.encode(), f"Bearer {secret}".encode())


class HasCronSecret(BasePermission):
    def has_permission(self, request, view):
        if has_valid_cron_secret(request):
            return True
        logger.warning(
            "Rejected cron trigger",
            extra={
                "path": request.path,
                "remote_addr": request.META.get("REMOTE_ADDR", "unknown"),
            },
        )
        raise CronUnauthorizedError()


class CronCheckView(APIView):
    """Run one health-check cycle and report what happened."""

    authentication_classes: list = []
    permission_classes = [HasCronSecret]
    throttle_classes = [CronRateThrottle]

    def get(self, request):
        try:
            summary = run_locked_cycle()
        except CycleError as exc:
            raise MonitorFetchError() from exc
        return Response(summary.to_dict(), status=status.HTTP_200_OK)


class CronCleanupView(APIView):
    """Delete health checks past the retention window."""

    authentication_classes: list = []
    permission_classes = [HasCronSecret]
    throttle_classes = [CronRateThrottle]

    def get(self, request):
        try:
            result = sweep()
        except RetentionError as exc:
            raise CleanupFailedError() from exc
        return Response(result.to_dict(), status=status.HTTP_200_OK)


class MonitorViewSet(viewsets.ModelViewSet):
    serializer_class = MonitorSerializer
    permission_classes = [IsAuthenticated]
    throttle_classes = [AuthenticatedUserRateThrottle]

    def get_queryset(self):
        return monitor_service.queryset_for_request(self.request)

    def perform_create(self, serializer):
        monitor_service.create_monitor(request=self.request, serializer=serializer)

    def perform_destroy(self, instance):
        monitor_service.delete_monitor(request=self.request, monitor=instance)

    @action(detail=True, methods=["get"])
    def uptime(self, request, pk=None):
        query = UptimeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        stats = calculate_uptime_stats(self.get_object(), days=query.validated_data["days"])
        return Response(stats.to_dict())


class NotificationChannelViewSet(viewsets.ModelViewSet):
    serializer_class = NotificationChannelSerializer
    permission_classes = [IsAuthenticated]
    throttle_classes = [AuthenticatedUserRateThrottle]

    def get_queryset(self):
        return channel_service.queryset_for_request(self.request)

    def perform_create(self, serializer):
        channel_service.create_channel(request=self.request, serializer=serializer)

    @action(detail=True, methods=["post"])
    def test(self, request, pk=None):
        report = send_test_notification(self.get_object())
        response_status = status.HTTP_200_OK if report.sent else status.HTTP_502_BAD_GATEWAY
        return Response({"success": bool(report.sent)}, status=response_status)


class IncidentUpdateView(APIView):
    """Append a manual timeline entry to one of the caller's incidents."""

    permission_classes = [IsAuthenticated]
    throttle_classes = [AuthenticatedUserRateThrottle]

    def post(self, request, incident_id):
        incident = incidents_for_request(request).filter(pk=incident_id).first()
        if incident is None:
            return Response({"error": "Incident not found"}, status=status.HTTP_404_NOT_FOUND)

        serializer = IncidentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        update = post_incident_update(
            incident,
            status=serializer.validated_data["status"],
            message=serializer.validated_data["message"],
            author=request.user,
        )
        return Response(
            {
                "id": str(update.id),
                "incident": str(incident.id),
                "status": update.status,
                "message": update.message,
                "resolved_at": incident.resolved_at.isoformat() if incident.resolved_at else None,
            },
            status=status.HTTP_201_CREATED,
        )


__all__ = [
    "CronCheckView",
    "CronCleanupView",
    "HasCronSecret",
    "IncidentUpdateView",
    "MonitorViewSet",
    "NotificationChannelViewSet",
    "has_valid_cron_secret",
]
