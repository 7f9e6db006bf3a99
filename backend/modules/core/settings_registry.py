"""Central registry for installed apps and the middleware chain.

Lets feature modules register additional Django apps or middleware without
editing the core settings module directly.
"""

from __future__ import annotations

from collections.abc import Iterable


class SettingsRegistry:
    """Keeps track of installed apps and middleware in registration order."""

    def __init__(self) -> None:
        self._apps: list[str] = [
            "django.contrib.admin",
            "django.contrib.auth",
            "django.contrib.contenttypes",
            "django.contrib.sessions",
            "django.contrib.messages",
            "django.contrib.staticfiles",
            "rest_framework",
            "django_celery_beat",
            "modules.monitoring",
        ]
        self._middleware: list[str] = [
            "app.middleware_internal.InternalEndpointMiddleware",
            "app.middleware_security_custom.CustomSecurityMiddleware",
            "whitenoise.middleware.WhiteNoiseMiddleware",
            "app.middleware_logging.RequestIDMiddleware",
            "app.middleware_logging.RequestLoggingMiddleware",
            "django.contrib.sessions.middleware.SessionMiddleware",
            "django.middleware.common.CommonMiddleware",
            "django.middleware.csrf.CsrfViewMiddleware",
            "django.contrib.auth.middleware.AuthenticationMiddleware",
            "django.contrib.messages.middleware.MessageMiddleware",
            "django.middleware.clickjacking.XFrameOptionsMiddleware",
        ]

    def register_apps(self, *apps: str) -> None:
        self._apps = _append_unique(self._apps, apps)

    def register_middleware(self, *middleware_classes: str) -> None:
        self._middleware = _append_unique(self._middleware, middleware_classes)

    @property
    def apps(self) -> list[str]:
        return self._apps

    @property
    def middleware(self) -> list[str]:
        return self._middleware


def _append_unique(target: list[str], new_items: Iterable[str]) -> list[str]:
    for item in new_items:
        if item and item not in target:
            target.append(item)
    return target


core_settings_registry = SettingsRegistry()


def register_apps(*apps: str) -> None:
    core_settings_registry.register_apps(*apps)


def register_middleware(*middleware_classes: str) -> None:
    core_settings_registry.register_middleware(*middleware_classes)


def get_installed_apps() -> list[str]:
    return list(core_settings_registry.apps)


def get_middleware() -> list[str]:
    return list(core_settings_registry.middleware)


__all__ = [
    "core_settings_registry",
    "register_apps",
    "register_middleware",
    "get_installed_apps",
    "get_middleware",
]
