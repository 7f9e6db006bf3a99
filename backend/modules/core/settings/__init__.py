"""Shared settings helpers for PingWatch.

Centralizes common settings primitives (paths, env loader, base configs) so
`app.settings_base` and the environment overlays import from a single module
rather than duplicating logic.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any

import environ
from celery.schedules import crontab

from modules.core.settings.logger import SettingsLoggingContext, setup_settings_logging
from modules.core.settings.security import (
    get_dev_csrf_trusted_origins,
    get_dev_https_settings,
    get_dev_security_headers,
    get_prod_csrf_trusted_origins,
    get_prod_https_settings,
    get_prod_security_headers,
)
from modules.core.settings.sentry import configure_sentry
from modules.core.settings_registry import get_installed_apps, get_middleware

# ---------------------------------------------------------------------------
# Base directories / env loader
# ---------------------------------------------------------------------------
# Path(__file__) -> backend/modules/core/settings/__init__.py; backend lives three levels up
BASE_DIR = Path(__file__).resolve().parents[3]
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

_env = environ.Env()
_env_file = BASE_DIR / ".env"
if not _env_file.exists():
    _env_file = BASE_DIR.parent / ".env"
if _env_file.exists():
    environ.Env.read_env(_env_file)


def get_env() -> environ.Env:
    """Return the singleton environ loader used across settings."""

    return _env


# ---------------------------------------------------------------------------
# Settings fragments
# ---------------------------------------------------------------------------


def build_default_database_config() -> dict[str, Any]:
    env = get_env()
    database = env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}")
    return {"default": database}


def build_cache_config(env: environ.Env | None = None) -> dict[str, Any]:
    """Cache backing the cycle lock; must be shared by every worker in production."""

    env = env or get_env()
    return {"default": env.cache("CACHE_URL", default="locmemcache://pingwatch")}


def build_rest_framework_config() -> dict[str, Any]:
    return {
        "DEFAULT_AUTHENTICATION_CLASSES": (
            "rest_framework.authentication.SessionAuthentication",
        ),
        "EXCEPTION_HANDLER": "api.exception_handler.custom_exception_handler",
        "DEFAULT_RENDERER_CLASSES": ("rest_framework.renderers.JSONRenderer",),
        "DEFAULT_THROTTLE_RATES": {
            "anon": "100/hour",
            "cron": "120/hour",
            "user": "1000/hour",
        },
    }


def build_logging_config(log_dir: Path | None = None) -> dict[str, Any]:
    dir_path = log_dir or LOG_DIR
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{levelname}] {asctime} {name} {module}.{funcName}:{lineno} - {message}",
                "style": "{",
            },
            "simple": {
                "format": "[{levelname}] {message}",
                "style": "{",
            },
        },
        "filters": {
            "require_debug_false": {"()": "django.utils.log.RequireDebugFalse"},
            "require_debug_true": {"()": "django.utils.log.RequireDebugTrue"},
            "max_warning": {"()": "app.logging_filters.MaxLevelFilter", "level": "WARNING"},
        },
        "handlers": {
            "console": {
                "level": "INFO",
                "class": "logging.StreamHandler",
                "formatter": "verbose",
            },
            **{
                name: {
                    "level": handler_cfg["level"],
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": dir_path / handler_cfg["filename"],
                    "maxBytes": handler_cfg.get("max_bytes", 1024 * 1024 * 5),
                    "backupCount": 5,
                    "formatter": "verbose",
                    **({"filters": ["max_warning"]} if handler_cfg.get("filters") else {}),
                }
                for name, handler_cfg in {
                    "file_app": {"level": "INFO", "filename": "pingwatch.log", "filters": True},
                    "file_error": {"level": "ERROR", "filename": "error.log"},
                    "file_security": {"level": "WARNING", "filename": "security.log"},
                    "file_request": {"level": "INFO", "filename": "request.log"},
                    "file_audit": {"level": "INFO", "filename": "audit.log"},
                    "file_performance": {"level": "INFO", "filename": "performance.log"},
                    "file_notifications": {
                        "level": "INFO",
                        "filename": "notifications.log",
                        "max_bytes": 1024 * 1024 * 10,
                    },
                    "file_health": {
                        "level": "INFO",
                        "filename": "health.log",
                        "max_bytes": 1024 * 1024 * 10,
                    },
                }.items()
            },
        },
        "loggers": {
            "django": {
                "handlers": ["console", "file_app", "file_error"],
                "level": "INFO",
                "propagate": False,
            },
            "django.security": {
                "handlers": ["file_security", "console"],
                "level": "WARNING",
                "propagate": False,
            },
            "django.request": {
                "handlers": ["file_app", "file_error", "console"],
                "level": "ERROR",
                "propagate": False,
            },
            "api": {
                "handlers": ["console", "file_app", "file_error"],
                "level": "INFO",
                "propagate": False,
            },
            "api.requests": {
                "handlers": ["file_request"],
                "level": "INFO",
                "propagate": False,
            },
            "api.health": {
                "handlers": ["file_health"],
                "level": "INFO",
                "propagate": False,
            },
            "api.cron": {
                "handlers": ["console", "file_app", "file_security"],
                "level": "INFO",
                "propagate": False,
            },
            "monitors": {
                "handlers": ["console", "file_app", "file_error"],
                "level": "INFO",
                "propagate": False,
            },
            "monitors.prober": {
                "handlers": ["console", "file_app"],
                "level": "INFO",
                "propagate": False,
            },
            "monitors.audit": {
                "handlers": ["file_audit", "console"],
                "level": "INFO",
                "propagate": False,
            },
            "monitors.performance": {
                "handlers": ["file_performance", "console"],
                "level": "INFO",
                "propagate": False,
            },
            "notifications": {
                "handlers": ["console", "file_notifications", "file_error"],
                "level": "INFO",
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console", "file_app"],
            "level": "INFO",
        },
    }


def build_email_defaults(env: environ.Env | None = None) -> Mapping[str, Any]:
    env = env or get_env()
    default_from = env("DEFAULT_FROM_EMAIL", default="noreply@pingwatch.local")
    return {
        "EMAIL_HOST": env("EMAIL_HOST", default="localhost"),
        "EMAIL_PORT": env.int("EMAIL_PORT", default=587),
        "EMAIL_USE_TLS": env.bool("EMAIL_USE_TLS", default=True),
        "EMAIL_HOST_USER": env("EMAIL_HOST_USER", default=""),
        "EMAIL_HOST_PASSWORD": env("EMAIL_HOST_PASSWORD", default=""),
        "DEFAULT_FROM_EMAIL": default_from,
        "SERVER_EMAIL": env("SERVER_EMAIL", default=default_from),
        # Public status-page frontend; it serves /s/<slug> and /api/subscribe/unsubscribe.
        "FRONTEND_URL": env("FRONTEND_URL", default="http://localhost:3000"),
        "NOTIFICATIONS_FROM_DOMAIN": env(
            "NOTIFICATIONS_FROM_DOMAIN", default="updates.pingwatch.local"
        ),
    }


def build_celery_config(
    env: environ.Env | None = None,
    *,
    timezone: str = "UTC",
) -> Mapping[str, Any]:
    env = env or get_env()
    redis_url = env("REDIS_URL", default="redis://127.0.0.1:6379/0")
    result_backend_default = redis_url[:-1] + "1" if redis_url.endswith("/0") else redis_url

    celery_broker_url = env("CELERY_BROKER_URL", default=redis_url)
    celery_result_backend = env("CELERY_RESULT_BACKEND", default=result_backend_default)

    return {
        "REDIS_URL": redis_url,
        "CELERY_BROKER_URL": celery_broker_url,
        "CELERY_RESULT_BACKEND": celery_result_backend,
        "CELERY_TIMEZONE": timezone,
        "CELERY_TASK_TRACK_STARTED": True,
        "CELERY_TASK_ALWAYS_EAGER": env.bool("CELERY_TASK_ALWAYS_EAGER", default=False),
        "CELERY_ACCEPT_CONTENT": ["json"],
        "CELERY_TASK_SERIALIZER": "json",
        "CELERY_RESULT_SERIALIZER": "json",
        "CELERY_BEAT_SCHEDULE": {
            "monitoring.run_health_check_cycle": {
                "task": "monitoring.tasks.run_health_check_cycle",
                "schedule": timedelta(minutes=1),
            },
            "monitoring.sweep_health_checks": {
                "task": "monitoring.tasks.sweep_health_checks",
                "schedule": crontab(hour=3, minute=15),
            },
        },
    }


def build_monitoring_config(env: environ.Env | None = None) -> Mapping[str, Any]:
    """Tunables for the health-check cycle, retention sweep and notification fan-out."""

    env = env or get_env()
    return {
        "CRON_SECRET": env("CRON_SECRET", default=""),
        "HEALTH_CHECK_BATCH_SIZE": env.int("HEALTH_CHECK_BATCH_SIZE", default=10),
        "HEALTH_CHECK_RETENTION_DAYS": env.int("HEALTH_CHECK_RETENTION_DAYS", default=90),
        "HEALTH_CHECK_CYCLE_LOCK_SECONDS": env.int("HEALTH_CHECK_CYCLE_LOCK_SECONDS", default=300),
        "NOTIFICATION_TIMEOUT_SECONDS": env.float("NOTIFICATION_TIMEOUT_SECONDS", default=10.0),
        "SUBSCRIBER_EMAIL_BATCH_SIZE": env.int("SUBSCRIBER_EMAIL_BATCH_SIZE", default=50),
    }


def build_plan_limits() -> dict[str, dict[str, Any]]:
    """Per-plan limits consumed by the policy provider at creation time."""

    return {
        "free": {
            "monitors": 5,
            "subscribers": 100,
            "check_interval_seconds": 3600,
            "notification_channels": ["email"],
        },
        "pro": {
            "monitors": 25,
            "subscribers": 5000,
            "check_interval_seconds": 300,
            "notification_channels": ["email", "slack", "webhook"],
        },
        "business": {
            "monitors": 100,
            "subscribers": 25000,
            "check_interval_seconds": 60,
            "notification_channels": ["email", "slack", "webhook", "sms"],
        },
    }


__all__ = [
    "BASE_DIR",
    "LOG_DIR",
    "get_env",
    "get_middleware",
    "get_installed_apps",
    "build_default_database_config",
    "build_cache_config",
    "build_rest_framework_config",
    "build_logging_config",
    "build_email_defaults",
    "build_celery_config",
    "build_monitoring_config",
    "build_plan_limits",
    "get_dev_csrf_trusted_origins",
    "get_prod_csrf_trusted_origins",
    "get_dev_https_settings",
    "get_prod_https_settings",
    "get_dev_security_headers",
    "get_prod_security_headers",
    "configure_sentry",
    "setup_settings_logging",
    "SettingsLoggingContext",
]
