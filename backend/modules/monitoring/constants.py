"""Thresholds and status vocabularies shared by the health-check core."""

from __future__ import annotations

from django.db import models

# Probe / incident thresholds
DEGRADED_THRESHOLD_MS = 3_000
DEFAULT_TIMEOUT_MS = 10_000
RETRY_COUNT = 2
RETRY_DELAY_SECONDS = 5.0
# Consecutive failing checks required before an incident is auto-opened.
INCIDENT_THRESHOLD = 2

USER_AGENT = "PingWatch-Monitor/1.0"


class HealthStatus(models.TextChoices):
    HEALTHY = "healthy", "Healthy"
    DEGRADED = "degraded", "Degraded"
    DOWN = "down", "Down"


FAILING_STATUSES = frozenset({HealthStatus.DOWN.value, HealthStatus.DEGRADED.value})


class ComponentStatus(models.TextChoices):
    OPERATIONAL = "operational", "Operational"
    DEGRADED = "degraded", "Degraded Performance"
    MAJOR_OUTAGE = "major_outage", "Major Outage"
    MAINTENANCE = "maintenance", "Under Maintenance"
    UNKNOWN = "unknown", "Unknown"


class IncidentStatus(models.TextChoices):
    INVESTIGATING = "investigating", "Investigating"
    IDENTIFIED = "identified", "Identified"
    MONITORING = "monitoring", "Monitoring"
    RESOLVED = "resolved", "Resolved"


class IncidentSeverity(models.TextChoices):
    MINOR = "minor", "Minor"
    MAJOR = "major", "Major"
    CRITICAL = "critical", "Critical"


class IncidentOrigin(models.TextChoices):
    MANUAL = "manual", "Manual"
    AUTO = "auto", "Automatic"


class ChannelType(models.TextChoices):
    SLACK = "slack", "Slack"
    WEBHOOK = "webhook", "Webhook"
    SMS = "sms", "SMS"


class NotificationEventType(models.TextChoices):
    INCIDENT_CREATED = "incident_created", "Incident created"
    INCIDENT_RESOLVED = "incident_resolved", "Incident resolved"
    MONITOR_DOWN = "monitor_down", "Monitor down"
    MONITOR_RECOVERED = "monitor_recovered", "Monitor recovered"
    TEST = "test", "Test"


class DeliveryStatus(models.TextChoices):
    SENT = "sent", "Sent"
    FAILED = "failed", "Failed"


HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
