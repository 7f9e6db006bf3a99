"""Tests for automatic incident open/resolve transitions and manual updates."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone
from modules.monitoring.constants import (
    ComponentStatus,
    IncidentOrigin,
    IncidentSeverity,
    IncidentStatus,
)
from modules.monitoring.dto import Transition
from modules.monitoring.incidents import (
    RECOVERY_MESSAGE,
    detect_transition,
    post_incident_update,
    recent_statuses,
)
from modules.monitoring.models import Incident, IncidentUpdate

pytestmark = pytest.mark.django_db


@pytest.fixture
def history(check_factory):
    """Append checks one minute apart; later calls continue after earlier ones."""

    clock = {"next": timezone.now() - timedelta(hours=1)}

    def _write(monitor, statuses):
        for status in statuses:
            check_factory(monitor, status=status, checked_at=clock["next"])
            clock["next"] += timedelta(minutes=1)

    return _write


def test_recent_statuses_are_newest_first(monitor, history):
    history(monitor, ["healthy", "degraded", "down", "healthy"])

    assert recent_statuses(monitor) == ["healthy", "down", "degraded"]


def test_two_failures_after_healthy_open_major_incident(monitor, component, history):
    history(monitor, ["healthy", "down", "down"])

    transition = detect_transition(monitor, "down")

    assert transition.kind == Transition.OPENED
    incident = transition.incident
    assert incident.title == "API Health is down"
    assert incident.message == "Automated: API Health detected as down"
    assert incident.severity == IncidentSeverity.MAJOR
    assert incident.status == IncidentStatus.INVESTIGATING
    assert incident.created_by == IncidentOrigin.AUTO
    assert incident.status_page_id == component.status_page_id
    assert list(incident.affected_components.all()) == [component]

    updates = list(IncidentUpdate.objects.filter(incident=incident))
    assert len(updates) == 1
    assert updates[0].status == IncidentStatus.INVESTIGATING
    assert updates[0].message == incident.message

    component.refresh_from_db()
    assert component.status == ComponentStatus.MAJOR_OUTAGE


def test_degraded_failures_open_minor_incident(monitor, component, history):
    history(monitor, ["healthy", "down", "degraded"])

    transition = detect_transition(monitor, "degraded")

    assert transition.opened
    assert transition.incident.severity == IncidentSeverity.MINOR
    assert transition.incident.title == "API Health is degraded"
    component.refresh_from_db()
    assert component.status == ComponentStatus.DEGRADED


def test_exactly_two_failing_checks_open_incident(monitor, history):
    history(monitor, ["down", "down"])

    assert detect_transition(monitor, "down").opened


def test_single_check_never_transitions(monitor, history):
    history(monitor, ["down"])

    assert detect_transition(monitor, "down") == Transition.unchanged()
    assert Incident.objects.count() == 0


def test_single_failure_does_not_open(monitor, history):
    history(monitor, ["healthy", "healthy", "down"])

    transition = detect_transition(monitor, "down")

    assert not transition.opened
    assert Incident.objects.count() == 0


def test_third_failure_does_not_open_second_incident(monitor, history):
    history(monitor, ["healthy", "down", "down"])
    assert detect_transition(monitor, "down").opened

    history(monitor, ["down"])
    transition = detect_transition(monitor, "down")

    assert not transition.opened
    assert Incident.objects.count() == 1


def test_open_incident_blocks_reopen_even_after_healthy_window(monitor, history):
    history(monitor, ["healthy", "down", "down"])
    first = detect_transition(monitor, "down")
    assert first.opened

    # Replay a history that would qualify again without resolving the first incident.
    monitor.health_checks.all().delete()
    history(monitor, ["healthy", "down", "down"])
    second = detect_transition(monitor, "down")

    assert not second.opened
    assert Incident.objects.count() == 1


def test_monitor_without_component_never_opens(monitor_factory, history):
    orphan = monitor_factory(name="Orphan")
    history(orphan, ["healthy", "down", "down"])

    assert detect_transition(orphan, "down") == Transition.unchanged()
    assert Incident.objects.count() == 0


def test_healthy_check_resolves_auto_incident(monitor, component, history):
    history(monitor, ["healthy", "down", "down"])
    opened = detect_transition(monitor, "down").incident

    history(monitor, ["healthy"])
    transition = detect_transition(monitor, "healthy")

    assert transition.kind == Transition.RESOLVED
    assert transition.incident.pk == opened.pk
    opened.refresh_from_db()
    assert opened.status == IncidentStatus.RESOLVED
    assert opened.resolved_at is not None
    assert not opened.is_open

    statuses = set(IncidentUpdate.objects.filter(incident=opened).values_list("status", flat=True))
    assert statuses == {IncidentStatus.INVESTIGATING, IncidentStatus.RESOLVED}
    resolved_update = IncidentUpdate.objects.get(incident=opened, status=IncidentStatus.RESOLVED)
    assert resolved_update.message == RECOVERY_MESSAGE

    component.refresh_from_db()
    assert component.status == ComponentStatus.OPERATIONAL


def test_healthy_check_without_open_incident_is_unchanged(monitor, history):
    history(monitor, ["healthy", "healthy", "healthy"])

    assert detect_transition(monitor, "healthy") == Transition.unchanged()


def test_manual_incident_blocks_auto_open_and_is_resolved_on_recovery(
    monitor, component, owner, history
):
    manual = Incident.objects.create(
        status_page=component.status_page,
        owner=owner,
        title="Planned database upgrade",
        status=IncidentStatus.IDENTIFIED,
        started_at=timezone.now(),
    )
    manual.affected_components.add(component)
    component.status = ComponentStatus.MAJOR_OUTAGE
    component.save()

    history(monitor, ["healthy", "down", "down"])
    assert not detect_transition(monitor, "down").opened

    history(monitor, ["healthy"])
    transition = detect_transition(monitor, "healthy")

    assert transition.resolved
    assert transition.incident == manual
    manual.refresh_from_db()
    assert manual.status == IncidentStatus.RESOLVED
    assert manual.resolved_at is not None
    assert manual.created_by == IncidentOrigin.MANUAL
    assert Incident.objects.count() == 1
    component.refresh_from_db()
    assert component.status == ComponentStatus.OPERATIONAL


def test_healthy_result_resolves_even_when_history_is_stale(monitor, component, history):
    history(monitor, ["healthy", "down", "down"])
    opened = detect_transition(monitor, "down").incident

    # The healthy check row was never written, so the window still ends in failures.
    transition = detect_transition(monitor, "healthy")

    assert transition.resolved
    assert transition.incident == opened
    component.refresh_from_db()
    assert component.status == ComponentStatus.OPERATIONAL


def test_post_incident_update_moves_status(monitor, history, owner):
    history(monitor, ["healthy", "down", "down"])
    incident = detect_transition(monitor, "down").incident

    update = post_incident_update(
        incident,
        status=IncidentStatus.IDENTIFIED,
        message="Upstream DNS provider outage.",
        author=owner,
    )

    incident.refresh_from_db()
    assert update.author == owner
    assert incident.status == IncidentStatus.IDENTIFIED
    assert incident.resolved_at is None


def test_post_incident_update_resolve_restores_components(monitor, component, history):
    history(monitor, ["healthy", "down", "down"])
    incident = detect_transition(monitor, "down").incident

    post_incident_update(incident, status=IncidentStatus.RESOLVED, message="Fixed.")

    incident.refresh_from_db()
    component.refresh_from_db()
    assert incident.status == IncidentStatus.RESOLVED
    assert incident.resolved_at is not None
    assert component.status == ComponentStatus.OPERATIONAL


def test_post_incident_update_rejects_unknown_status(monitor, history):
    history(monitor, ["healthy", "down", "down"])
    incident = detect_transition(monitor, "down").incident

    with pytest.raises(ValueError):
        post_incident_update(incident, status="exploded", message="?")
