"""Account-scoped workflows for monitors and notification channels."""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from rest_framework.exceptions import PermissionDenied

from .models import Incident, Monitor, NotificationChannel
from .policy import PolicyProvider, default_policy

logger = logging.getLogger("monitors")
audit_logger = logging.getLogger("monitors.audit")
policy_logger = logging.getLogger("monitors.policy")


class MonitorService:
    """Creating, listing and deleting an account's monitors."""

    def __init__(self, policy: PolicyProvider | None = None):
        self.policy = policy or default_policy

    def queryset_for_request(self, request):
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return Monitor.objects.none()
        return Monitor.objects.filter(owner=user).select_related("component").order_by("name")

    def create_monitor(self, *, request, serializer) -> Monitor:
        self._enforce_monitor_limit(request.user)

        with transaction.atomic():
            monitor = serializer.save(owner=request.user)

        audit_logger.info(
            "Monitor created",
            extra=self._audit_payload(monitor=monitor, user_id=request.user.pk),
        )
        return monitor

    def delete_monitor(self, *, request, monitor: Monitor) -> None:
        audit_logger.info(
            "Monitor deleted",
            extra=self._audit_payload(monitor=monitor, user_id=getattr(request.user, "pk", None)),
        )
        monitor.delete()

    def _enforce_monitor_limit(self, owner) -> None:
        limit = self.policy.monitor_limit(owner)
        existing_count = Monitor.objects.filter(owner=owner).count()
        if existing_count >= limit:
            policy_logger.info(
                "Monitor limit reached",
                extra={
                    "user_id": owner.pk,
                    "plan": self.policy.plan_for(owner),
                    "existing_monitors": existing_count,
                    "limit": limit,
                },
            )
            raise PermissionDenied(f"Your plan allows {limit} monitors. Please upgrade.")

    @staticmethod
    def _audit_payload(*, monitor: Monitor, user_id: Any) -> dict[str, Any]:
        return {
            "monitor_id": str(monitor.id),
            "url": monitor.url,
            "user_id": user_id,
        }


class ChannelService:
    def queryset_for_request(self, request):
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return NotificationChannel.objects.none()
        return NotificationChannel.objects.filter(owner=user).order_by("created_at")

    def create_channel(self, *, request, serializer) -> NotificationChannel:
        channel = serializer.save(owner=request.user)
        audit_logger.info(
            "Notification channel created",
            extra={
                "channel_id": str(channel.id),
                "channel_type": channel.type,
                "user_id": request.user.pk,
            },
        )
        return channel


def incidents_for_request(request):
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return Incident.objects.none()
    return Incident.objects.filter(owner=user).select_related("status_page")


monitor_service = MonitorService()
channel_service = ChannelService()

__all__ = [
    "ChannelService",
    "MonitorService",
    "channel_service",
    "incidents_for_request",
    "monitor_service",
]
