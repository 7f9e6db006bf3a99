"""Monitoring models: status pages, monitors, checks, incidents and notifications."""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models

from .constants import (
    HTTP_METHODS,
    ChannelType,
    ComponentStatus,
    DeliveryStatus,
    HealthStatus,
    IncidentOrigin,
    IncidentSeverity,
    IncidentStatus,
)


class StatusPage(models.Model):
    """Public status page owned by an account; groups components and subscribers."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="status_pages",
    )
    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=80, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        return f"{self.name} ({self.slug})"


class Component(models.Model):
    """User-visible service unit whose status the incident engine drives."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    status_page = models.ForeignKey(
        StatusPage,
        on_delete=models.CASCADE,
        related_name="components",
    )
    name = models.CharField(max_length=120)
    position = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=32,
        choices=ComponentStatus.choices,
        default=ComponentStatus.OPERATIONAL,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("position", "name")

    def __str__(self) -> str:
        return f"{self.name} [{self.status}]"


class Monitor(models.Model):
    """Endpoint + schedule to probe, optionally linked to a component."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="monitors",
    )
    component = models.ForeignKey(
        Component,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="monitors",
    )
    name = models.CharField(max_length=120)
    url = models.URLField(max_length=500)
    method = models.CharField(
        max_length=8,
        choices=[(method, method) for method in HTTP_METHODS],
        default="GET",
    )
    expected_status = models.PositiveSmallIntegerField(default=200)
    check_interval_seconds = models.PositiveIntegerField(default=300)
    timeout_ms = models.PositiveIntegerField(default=10_000)
    is_active = models.BooleanField(default=True)
    is_paused = models.BooleanField(default=False)
    last_check_at = models.DateTimeField(null=True, blank=True)
    last_status = models.CharField(
        max_length=16,
        choices=HealthStatus.choices,
        null=True,
        blank=True,
    )
    last_response_time_ms = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)
        indexes = [models.Index(fields=["is_active", "is_paused"], name="monitor_schedulable_idx")]

    def __str__(self) -> str:
        return f"{self.name} ({self.url})"


class HealthCheck(models.Model):
    """One probe outcome. Append-only; removed only by the retention sweep."""

    monitor = models.ForeignKey(
        Monitor,
        on_delete=models.CASCADE,
        related_name="health_checks",
    )
    status = models.CharField(max_length=16, choices=HealthStatus.choices)
    response_time_ms = models.PositiveIntegerField(null=True, blank=True)
    http_status = models.PositiveSmallIntegerField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    checked_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ("-checked_at", "-id")
        indexes = [
            models.Index(fields=["monitor", "-checked_at"], name="healthcheck_monitor_recent_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.monitor_id} {self.status} @ {self.checked_at.isoformat()}"


class Incident(models.Model):
    """Tracked outage or maintenance window with an append-only timeline."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    status_page = models.ForeignKey(
        StatusPage,
        on_delete=models.CASCADE,
        related_name="incidents",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="incidents",
    )
    title = models.CharField(max_length=200)
    status = models.CharField(
        max_length=16,
        choices=IncidentStatus.choices,
        default=IncidentStatus.INVESTIGATING,
    )
    severity = models.CharField(
        max_length=16,
        choices=IncidentSeverity.choices,
        default=IncidentSeverity.MINOR,
    )
    message = models.TextField(blank=True)
    affected_components = models.ManyToManyField(
        Component,
        related_name="incidents",
        blank=True,
    )
    is_maintenance = models.BooleanField(default=False)
    started_at = models.DateTimeField()
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_by = models.CharField(
        max_length=8,
        choices=IncidentOrigin.choices,
        default=IncidentOrigin.MANUAL,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-started_at",)

    def __str__(self) -> str:
        return f"{self.title} [{self.status}]"

    @property
    def is_open(self) -> bool:
        return self.status != IncidentStatus.RESOLVED


class IncidentUpdate(models.Model):
    """Timeline entry; one per incident status transition."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    incident = models.ForeignKey(
        Incident,
        on_delete=models.CASCADE,
        related_name="updates",
    )
    status = models.CharField(max_length=16, choices=IncidentStatus.choices)
    message = models.TextField()
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="incident_updates",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("created_at",)


class Subscriber(models.Model):
    """Email address opted in to incident updates for a status page."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    status_page = models.ForeignKey(
        StatusPage,
        on_delete=models.CASCADE,
        related_name="subscribers",
    )
    email = models.EmailField()
    is_verified = models.BooleanField(default=False)
    subscribed_at = models.DateTimeField(auto_now_add=True)
    unsubscribed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("subscribed_at",)
        unique_together = ("status_page", "email")

    def __str__(self) -> str:
        return self.email


class NotificationChannel(models.Model):
    """Outbound notification target; ``config`` shape depends on ``type``."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notification_channels",
    )
    status_page = models.ForeignKey(
        StatusPage,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notification_channels",
    )
    name = models.CharField(max_length=120)
    type = models.CharField(max_length=16, choices=ChannelType.choices)
    config = models.JSONField(default=dict)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("created_at",)

    def __str__(self) -> str:
        return f"{self.name} ({self.type})"


class NotificationLog(models.Model):
    """Audit record of one delivery attempt. Write-only from the dispatcher."""

    channel = models.ForeignKey(
        NotificationChannel,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deliveries",
    )
    channel_type = models.CharField(max_length=16)
    incident = models.ForeignKey(
        Incident,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    monitor = models.ForeignKey(
        Monitor,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    event_type = models.CharField(max_length=32)
    payload = models.JSONField(default=dict)
    status = models.CharField(max_length=8, choices=DeliveryStatus.choices)
    error_message = models.TextField(null=True, blank=True)
    sent_at = models.DateTimeField()

    class Meta:
        ordering = ("-sent_at", "-id")

    def __str__(self) -> str:
        return f"{self.event_type} via {self.channel_type}: {self.status}"


__all__ = [
    "Component",
    "HealthCheck",
    "Incident",
    "IncidentUpdate",
    "Monitor",
    "NotificationChannel",
    "NotificationLog",
    "StatusPage",
    "Subscriber",
]
