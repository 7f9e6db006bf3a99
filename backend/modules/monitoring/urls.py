"""Monitoring routes: cron triggers and the account-scoped API."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    CronCheckView,
    CronCleanupView,
    IncidentUpdateView,
    MonitorViewSet,
    NotificationChannelViewSet,
)

router = DefaultRouter()
router.register("monitors", MonitorViewSet, basename="monitor")
router.register("notifications/channels", NotificationChannelViewSet, basename="notification-channel")

cron_urlpatterns = [
    path("cron/check", CronCheckView.as_view(), name="cron_check"),
    path("cron/cleanup", CronCleanupView.as_view(), name="cron_cleanup"),
]

api_urlpatterns = [
    path(
        "incidents/<uuid:incident_id>/updates/",
        IncidentUpdateView.as_view(),
        name="incident_updates",
    ),
    *router.urls,
]

urlpatterns = cron_urlpatterns

__all__ = ["api_urlpatterns", "cron_urlpatterns", "router", "urlpatterns"]
