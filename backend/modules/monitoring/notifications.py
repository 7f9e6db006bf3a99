"""Notification fan-out: channels of the owner, then email to page subscribers.

Delivery is best-effort. Each channel is attempted independently and every
attempt leaves one NotificationLog row; nothing here raises back into the
health-check cycle.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.db.models import Q
from django.utils import timezone
from django.utils.html import escape

from .channels import deliver
from .constants import DeliveryStatus, NotificationEventType
from .dto import DispatchReport, NotificationEvent
from .exceptions import ChannelConfigError, DeliveryError
from .models import (
    Incident,
    Monitor,
    NotificationChannel,
    NotificationLog,
    StatusPage,
    Subscriber,
)

logger = logging.getLogger("notifications")

TEST_MESSAGE = "This is a test notification from PingWatch. If you can read this, the channel works."


def channels_for(owner, status_page: StatusPage | None) -> list[NotificationChannel]:
    """Active channels of ``owner`` that are unscoped or scoped to ``status_page``."""

    scope = Q(status_page__isnull=True)
    if status_page is not None:
        scope |= Q(status_page=status_page)
    return list(
        NotificationChannel.objects.filter(owner=owner, is_active=True)
        .filter(scope)
        .order_by("created_at")
    )


def dispatch(owner, status_page: StatusPage | None, event: NotificationEvent) -> DispatchReport:
    """Deliver ``event`` to every matching channel, then to subscribers for incident events."""

    report = DispatchReport()
    for channel in channels_for(owner, status_page):
        if _deliver_to_channel(channel, event):
            report.sent += 1
        else:
            report.failed += 1

    if event.is_incident_event and status_page is not None:
        report.subscribers_emailed = notify_subscribers(status_page, event)

    logger.info(
        "Notification fan-out finished",
        extra={
            "event_type": event.type,
            "status_page": event.status_page_slug,
            "incident_id": str(event.incident.id) if event.incident else None,
            **report.to_dict(),
        },
    )
    return report


def send_test_notification(channel: NotificationChannel) -> DispatchReport:
    """Push a fixed test message through ``channel`` and log it as a ``test`` event."""

    status_page = channel.status_page
    event = NotificationEvent(
        type=NotificationEventType.TEST,
        message=TEST_MESSAGE,
        status_page_name=status_page.name if status_page else "PingWatch",
        status_page_slug=status_page.slug if status_page else "",
    )
    report = DispatchReport()
    if _deliver_to_channel(channel, event):
        report.sent = 1
    else:
        report.failed = 1
    return report


def _deliver_to_channel(channel: NotificationChannel, event: NotificationEvent) -> bool:
    error_message: str | None = None
    try:
        deliver(channel.type, channel.config, event)
    except (ChannelConfigError, DeliveryError) as exc:
        error_message = str(exc)
    except Exception as exc:  # noqa: BLE001
        error_message = str(exc) or type(exc).__name__
        logger.error(
            "Unexpected error delivering notification",
            extra={"channel_id": str(channel.id), "channel_type": channel.type},
            exc_info=True,
        )

    status = DeliveryStatus.FAILED if error_message else DeliveryStatus.SENT
    if error_message:
        logger.warning(
            "Notification delivery failed",
            extra={
                "channel_id": str(channel.id),
                "channel_type": channel.type,
                "event_type": event.type,
                "error": error_message,
            },
        )

    _record_delivery(channel, event, status, error_message)
    return status == DeliveryStatus.SENT


def _record_delivery(
    channel: NotificationChannel,
    event: NotificationEvent,
    status: str,
    error_message: str | None,
) -> None:
    try:
        NotificationLog.objects.create(
            channel=channel,
            channel_type=channel.type,
            incident=event.incident,
            monitor=event.monitor,
            event_type=event.type,
            payload=event.to_payload(),
            status=status,
            error_message=error_message,
            sent_at=timezone.now(),
        )
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Failed to write notification log",
            extra={
                "channel_id": str(channel.id),
                "event_type": event.type,
                "delivery_status": status,
                "error": str(exc),
            },
        )


def active_subscribers(status_page: StatusPage) -> list[Subscriber]:
    return list(
        Subscriber.objects.filter(
            status_page=status_page,
            is_verified=True,
            unsubscribed_at__isnull=True,
        ).order_by("subscribed_at", "id")
    )


def _batched(items: Sequence[Subscriber], size: int) -> Iterable[Sequence[Subscriber]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _build_subscriber_email(subscriber: Subscriber, event: NotificationEvent, connection):
    app_url = settings.FRONTEND_URL.rstrip("/")
    status_page_url = f"{app_url}/s/{event.status_page_slug}"
    # Both routes are served by the public status-page frontend at FRONTEND_URL, not this backend.
    unsubscribe_url = f"{app_url}/api/subscribe/unsubscribe?id={subscriber.id}"
    heading = event.incident.title if event.incident else "Status Update"
    label = "Resolved" if event.type == NotificationEventType.INCIDENT_RESOLVED else "Incident"
    subject = f"[{label}] {event.incident.title if event.incident else event.message}"
    sender_name = event.status_page_name or "PingWatch"

    text_body = (
        f"{heading}\n\n{event.message}\n\n"
        f"View status page: {status_page_url}\n\n"
        f"Unsubscribe: {unsubscribe_url}\n"
    )
    html_body = (
        '<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">'
        f"<h2>{escape(heading)}</h2>"
        f"<p>{escape(event.message)}</p>"
        f'<p><a href="{escape(status_page_url)}">View Status Page</a></p>'
        "<hr />"
        '<p style="color: #666; font-size: 12px;">'
        f'<a href="{escape(unsubscribe_url)}">Unsubscribe</a>'
        "</p></div>"
    )

    message = EmailMultiAlternatives(
        subject=subject,
        body=text_body,
        from_email=f"{sender_name} <notifications@{settings.NOTIFICATIONS_FROM_DOMAIN}>",
        to=[subscriber.email],
        connection=connection,
        headers={"List-Unsubscribe": f"<{unsubscribe_url}>"},
    )
    message.attach_alternative(html_body, "text/html")
    return message


def notify_subscribers(status_page: StatusPage, event: NotificationEvent) -> int:
    """Email verified, still-subscribed addresses of ``status_page`` in batches.

    Returns the number of emails handed to the mail backend. Any failure stops
    the remaining batches and is logged once.
    """

    subscribers = active_subscribers(status_page)
    if not subscribers:
        return 0

    sent = 0
    batch_size = settings.SUBSCRIBER_EMAIL_BATCH_SIZE
    try:
        with get_connection() as connection:
            for batch in _batched(subscribers, batch_size):
                messages = [
                    _build_subscriber_email(subscriber, event, connection) for subscriber in batch
                ]
                sent += connection.send_messages(messages) or 0
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Failed to send subscriber emails",
            extra={
                "status_page": status_page.slug,
                "event_type": event.type,
                "subscribers": len(subscribers),
                "emails_sent": sent,
                "error": str(exc),
            },
        )
    return sent


def transition_events(
    kind: str,
    incident: Incident,
    monitor: Monitor,
) -> tuple[NotificationEvent, NotificationEvent]:
    """Incident-level and monitor-level events for an opened or resolved incident."""

    status_page = incident.status_page
    if kind == "opened":
        incident_type = NotificationEventType.INCIDENT_CREATED
        monitor_type = NotificationEventType.MONITOR_DOWN
        incident_message = (
            f"{monitor.name} is experiencing issues. An incident has been automatically created."
        )
        monitor_message = f'Monitor "{monitor.name}" is DOWN. URL: {monitor.url}'
    else:
        incident_type = NotificationEventType.INCIDENT_RESOLVED
        monitor_type = NotificationEventType.MONITOR_RECOVERED
        incident_message = (
            f"{monitor.name} has recovered. The incident has been automatically resolved."
        )
        monitor_message = f'Monitor "{monitor.name}" has RECOVERED. URL: {monitor.url}'

    common = {
        "status_page_name": status_page.name,
        "status_page_slug": status_page.slug,
        "monitor_name": monitor.name,
        "incident": incident,
        "monitor": monitor,
    }
    return (
        NotificationEvent(type=incident_type, message=incident_message, **common),
        NotificationEvent(type=monitor_type, message=monitor_message, **common),
    )


__all__ = [
    "TEST_MESSAGE",
    "active_subscribers",
    "channels_for",
    "dispatch",
    "notify_subscribers",
    "send_test_notification",
    "transition_events",
]
