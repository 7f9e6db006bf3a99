"""Tests for notification fan-out, delivery logging and subscriber email."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests
from django.core import mail
from django.core.mail.backends.locmem import EmailBackend
from django.db import DatabaseError
from django.utils import timezone
from modules.monitoring.constants import (
    DeliveryStatus,
    IncidentOrigin,
    IncidentSeverity,
    NotificationEventType,
)
from modules.monitoring.models import Incident, NotificationLog, StatusPage
from modules.monitoring.notifications import (
    TEST_MESSAGE,
    active_subscribers,
    channels_for,
    dispatch,
    send_test_notification,
    transition_events,
)

pytestmark = pytest.mark.django_db

WEBHOOK_URL = "https://hooks.example.com/pingwatch"
SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"


@pytest.fixture
def incident(status_page, component, owner):
    incident = Incident.objects.create(
        status_page=status_page,
        owner=owner,
        title="API Health is down",
        severity=IncidentSeverity.MAJOR,
        message="Automated: API Health detected as down",
        started_at=timezone.now(),
        created_by=IncidentOrigin.AUTO,
    )
    incident.affected_components.add(component)
    return incident


@pytest.fixture
def opened_events(incident, monitor):
    return transition_events("opened", incident, monitor)


@pytest.fixture
def mock_post():
    with patch("modules.monitoring.channels.requests.post") as mocked:
        mocked.return_value = MagicMock(status_code=200)
        yield mocked


def test_transition_events_for_opened_incident(incident, monitor):
    incident_event, monitor_event = transition_events("opened", incident, monitor)

    assert incident_event.type == NotificationEventType.INCIDENT_CREATED
    assert incident_event.message == (
        "API Health is experiencing issues. An incident has been automatically created."
    )
    assert monitor_event.type == NotificationEventType.MONITOR_DOWN
    assert monitor_event.message == (
        'Monitor "API Health" is DOWN. URL: https://api.example.com/health'
    )
    assert incident_event.status_page_slug == "acme"


def test_transition_events_for_resolved_incident(incident, monitor):
    incident_event, monitor_event = transition_events("resolved", incident, monitor)

    assert incident_event.type == NotificationEventType.INCIDENT_RESOLVED
    assert "automatically resolved" in incident_event.message
    assert monitor_event.type == NotificationEventType.MONITOR_RECOVERED
    assert monitor_event.message.startswith('Monitor "API Health" has RECOVERED.')


def test_channels_for_includes_unscoped_and_matching_page(
    channel_factory, owner, status_page, user_factory
):
    unscoped = channel_factory("slack")
    scoped = channel_factory("webhook", status_page=status_page)
    other_page = StatusPage.objects.create(owner=owner, name="Other", slug="other")
    channel_factory("webhook", status_page=other_page)
    channel_factory("slack", is_active=False)
    channel_factory("slack", owner=user_factory("stranger"))

    selected = channels_for(owner, status_page)

    assert {channel.pk for channel in selected} == {unscoped.pk, scoped.pk}


def test_failing_webhook_does_not_stop_slack(
    channel_factory, owner, status_page, opened_events, mock_post, capture_logs
):
    webhook = channel_factory("webhook")
    slack = channel_factory("slack")

    def _post(url, **kwargs):
        if url == WEBHOOK_URL:
            raise requests.ConnectionError("connection refused")
        return MagicMock(status_code=200)

    mock_post.side_effect = _post

    with capture_logs("notifications", logging.WARNING) as caplog:
        report = dispatch(owner, status_page, opened_events[0])

    assert report.sent == 1
    assert report.failed == 1
    failed = NotificationLog.objects.get(channel=webhook)
    assert failed.status == DeliveryStatus.FAILED
    assert failed.error_message == "connection refused"
    sent = NotificationLog.objects.get(channel=slack)
    assert sent.status == DeliveryStatus.SENT
    assert sent.error_message is None
    assert sent.event_type == NotificationEventType.INCIDENT_CREATED
    assert any(r.getMessage() == "Notification delivery failed" for r in caplog.records)


def test_webhook_receives_payload_and_secret(
    channel_factory, owner, status_page, incident, opened_events, mock_post
):
    channel_factory(
        "webhook",
        config={"url": WEBHOOK_URL, "secret": "shh", "headers": {"X-Team": "ops"}},
    )

    dispatch(owner, status_page, opened_events[1])

    mock_post.assert_called_once()
    kwargs = mock_post.call_args.kwargs
    assert kwargs["headers"]["X-Webhook-Secret"] == "shh"
    assert kwargs["headers"]["X-Team"] == "ops"
    body = kwargs["json"]
    assert body["event"] == "monitor_down"
    assert body["status_page"] == {"name": "Acme Status", "slug": "acme"}
    assert body["incident"]["id"] == str(incident.id)
    assert body["monitor"] == {"name": "API Health"}
    log = NotificationLog.objects.get()
    assert log.payload == body
    assert log.incident_id == incident.id


def test_http_error_status_is_recorded_as_failure(
    channel_factory, owner, status_page, opened_events, mock_post
):
    channel_factory("slack")
    response = MagicMock(status_code=500)
    response.raise_for_status.side_effect = requests.HTTPError(response=response)
    mock_post.return_value = response

    report = dispatch(owner, status_page, opened_events[1])

    assert report.failed == 1
    log = NotificationLog.objects.get()
    assert log.status == DeliveryStatus.FAILED
    assert log.error_message == "HTTP 500 from notification target"


def test_sms_channel_is_logged_as_sent_without_network(
    channel_factory, owner, status_page, opened_events, mock_post
):
    channel_factory("sms")

    report = dispatch(owner, status_page, opened_events[1])

    assert report.sent == 1
    mock_post.assert_not_called()
    assert NotificationLog.objects.get().status == DeliveryStatus.SENT


def test_invalid_channel_config_is_logged_as_failed(
    channel_factory, owner, status_page, opened_events, mock_post
):
    channel_factory("webhook", config={"headers": {}})
    channel_factory("pager", config={})

    report = dispatch(owner, status_page, opened_events[1])

    assert report.failed == 2
    errors = set(NotificationLog.objects.values_list("error_message", flat=True))
    assert errors == {"webhook: 'url' is required", "pager: unknown channel type"}
    mock_post.assert_not_called()


def test_log_write_failure_is_logged_and_delivery_still_counts(
    channel_factory, owner, status_page, opened_events, mock_post, capture_logs
):
    channel_factory("slack")

    with patch(
        "modules.monitoring.notifications.NotificationLog.objects.create",
        side_effect=DatabaseError("table locked"),
    ):
        with capture_logs("notifications", logging.ERROR) as caplog:
            report = dispatch(owner, status_page, opened_events[1])

    assert report.sent == 1
    assert any(r.getMessage() == "Failed to write notification log" for r in caplog.records)


def test_incident_event_emails_active_subscribers(
    subscriber_factory, owner, status_page, opened_events, mock_post
):
    keeper = subscriber_factory("keeper@example.com")
    subscriber_factory("pending@example.com", is_verified=False)
    subscriber_factory("gone@example.com", unsubscribed_at=timezone.now())

    report = dispatch(owner, status_page, opened_events[0])

    assert report.subscribers_emailed == 1
    assert [s.pk for s in active_subscribers(status_page)] == [keeper.pk]
    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.to == ["keeper@example.com"]
    assert message.subject == "[Incident] API Health is down"
    assert message.from_email.startswith("Acme Status <notifications@")
    unsubscribe = f"https://status.example.com/api/subscribe/unsubscribe?id={keeper.id}"
    assert unsubscribe in message.body
    assert message.extra_headers["List-Unsubscribe"] == f"<{unsubscribe}>"
    html, mimetype = message.alternatives[0]
    assert mimetype == "text/html"
    assert "Unsubscribe" in html


def test_resolved_event_uses_resolved_subject(
    subscriber_factory, owner, status_page, incident, monitor, mock_post
):
    subscriber_factory()
    resolved_event, _ = transition_events("resolved", incident, monitor)

    dispatch(owner, status_page, resolved_event)

    assert mail.outbox[0].subject == "[Resolved] API Health is down"


def test_monitor_event_does_not_email_subscribers(
    subscriber_factory, owner, status_page, opened_events, mock_post
):
    subscriber_factory()

    report = dispatch(owner, status_page, opened_events[1])

    assert report.subscribers_emailed == 0
    assert mail.outbox == []


def test_subscribers_are_emailed_in_batches_of_fifty(
    subscriber_factory, owner, status_page, opened_events, mock_post
):
    for index in range(120):
        subscriber_factory(f"reader{index:03d}@example.com")

    with patch.object(
        EmailBackend, "send_messages", autospec=True, side_effect=EmailBackend.send_messages
    ) as spy:
        report = dispatch(owner, status_page, opened_events[0])

    assert [len(call.args[1]) for call in spy.call_args_list] == [50, 50, 20]
    assert report.subscribers_emailed == 120
    assert len(mail.outbox) == 120


def test_email_failure_is_logged_once(
    subscriber_factory, owner, status_page, opened_events, mock_post, capture_logs
):
    subscriber_factory()

    with patch.object(EmailBackend, "send_messages", side_effect=OSError("smtp down")):
        with capture_logs("notifications", logging.ERROR) as caplog:
            report = dispatch(owner, status_page, opened_events[0])

    assert report.subscribers_emailed == 0
    failures = [r for r in caplog.records if r.getMessage() == "Failed to send subscriber emails"]
    assert len(failures) == 1


def test_send_test_notification_logs_test_event(channel_factory, mock_post):
    channel = channel_factory("slack")

    report = send_test_notification(channel)

    assert report.sent == 1
    body = mock_post.call_args.kwargs["json"]
    assert body["text"] == f"*TEST*\n{TEST_MESSAGE}"
    log = NotificationLog.objects.get()
    assert log.event_type == NotificationEventType.TEST
    assert log.incident is None
