"""
Pytest configuration for the PingWatch backend.

Provides model factories, a DRF client and a helper to capture records from
the project's non-propagating loggers.
"""

import logging
import uuid
from contextlib import contextmanager
from pathlib import Path

import pytest


def pytest_configure(config):
    """Configure test environment before tests run."""
    from django.conf import settings

    # Ensure STATIC_ROOT exists so Django/Whitenoise stop warning during tests.
    static_root = getattr(settings, "STATIC_ROOT", None)
    if static_root:
        Path(static_root).mkdir(parents=True, exist_ok=True)


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user_factory(db):
    from django.contrib.auth import get_user_model

    User = get_user_model()

    def _create(username: str | None = None, **kwargs):
        username = username or f"user-{uuid.uuid4().hex[:8]}"
        kwargs.setdefault("email", f"{username}@example.com")
        return User.objects.create_user(username=username, password="s3cret-pass-123", **kwargs)

    return _create


@pytest.fixture
def owner(user_factory):
    return user_factory("owner")


@pytest.fixture
def status_page(owner):
    from modules.monitoring.models import StatusPage

    return StatusPage.objects.create(owner=owner, name="Acme Status", slug="acme")


@pytest.fixture
def component(status_page):
    from modules.monitoring.models import Component

    return Component.objects.create(status_page=status_page, name="API", position=1)


@pytest.fixture
def monitor_factory(owner):
    from modules.monitoring.models import Monitor

    def _create(**kwargs):
        kwargs.setdefault("owner", owner)
        kwargs.setdefault("name", f"Monitor {uuid.uuid4().hex[:6]}")
        kwargs.setdefault("url", "https://api.example.com/health")
        return Monitor.objects.create(**kwargs)

    return _create


@pytest.fixture
def monitor(monitor_factory, component):
    return monitor_factory(name="API Health", component=component)


@pytest.fixture
def channel_factory(owner):
    from modules.monitoring.models import NotificationChannel

    def _create(type="webhook", config=None, **kwargs):
        kwargs.setdefault("owner", owner)
        kwargs.setdefault("name", f"{type} channel")
        if config is None:
            config = {
                "slack": {"webhook_url": "https://hooks.slack.com/services/T000/B000/XXXX"},
                "webhook": {"url": "https://hooks.example.com/pingwatch"},
                "sms": {"phone_number": "+15555550100", "country_code": "US"},
            }[type]
        return NotificationChannel.objects.create(type=type, config=config, **kwargs)

    return _create


@pytest.fixture
def subscriber_factory(status_page):
    from modules.monitoring.models import Subscriber

    def _create(email: str | None = None, **kwargs):
        kwargs.setdefault("status_page", status_page)
        kwargs.setdefault("is_verified", True)
        email = email or f"sub-{uuid.uuid4().hex[:8]}@example.com"
        return Subscriber.objects.create(email=email, **kwargs)

    return _create


@pytest.fixture
def check_factory():
    from django.utils import timezone
    from modules.monitoring.models import HealthCheck

    def _create(monitor, status="healthy", checked_at=None, **kwargs):
        kwargs.setdefault("response_time_ms", 120 if status != "down" else 0)
        return HealthCheck.objects.create(
            monitor=monitor,
            status=status,
            checked_at=checked_at or timezone.now(),
            **kwargs,
        )

    return _create


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def capture_logs(caplog):
    """Attach caplog to a named logger; project loggers do not propagate to root."""

    @contextmanager
    def _capture(name: str, level: int = logging.INFO):
        target = logging.getLogger(name)
        caplog.set_level(level, logger=name)
        target.addHandler(caplog.handler)
        try:
            yield caplog
        finally:
            target.removeHandler(caplog.handler)

    return _capture


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Log failing test details to the Django error logger for debugging."""

    outcome = yield
    report = outcome.get_result()

    if not report.failed:
        return

    logger = logging.getLogger("django")
    longrepr = getattr(report, "longreprtext", None)
    detail = longrepr if isinstance(longrepr, str) else str(report.longrepr)
    logger.error(
        "Pytest failure | phase=%s | nodeid=%s\n%s",
        report.when,
        report.nodeid,
        detail,
    )
