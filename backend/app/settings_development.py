"""
Development settings for PingWatch.

Optimized for local development with relaxed security and verbose logging.
"""

from modules.core.settings import (
    configure_sentry,
    get_dev_csrf_trusted_origins,
    get_dev_https_settings,
    get_dev_security_headers,
)

from app.settings_base import *  # noqa: F403, F401

# -------------------------------------------------------------------
# Core Development Settings
# -------------------------------------------------------------------
DEBUG = True

SECRET_KEY = env(  # noqa: F405
    "SECRET_KEY", default="django-insecure-dev-key-CHANGE-ME-IN-PRODUCTION"
)

ALLOWED_HOSTS = [
    "localhost",
    "127.0.0.1",
    ".localhost",
    "pingwatch.local",
    ".pingwatch.local",
]

# Cron endpoints still require a bearer token locally.
CRON_SECRET = env("CRON_SECRET", default="dev-cron-secret")  # noqa: F405

# -------------------------------------------------------------------
# CSRF / HTTPS / headers (Development - Relaxed)
# -------------------------------------------------------------------
CSRF_TRUSTED_ORIGINS = get_dev_csrf_trusted_origins()
globals().update(get_dev_https_settings())
globals().update(get_dev_security_headers())

# -------------------------------------------------------------------
# Email Configuration (Development - Console Backend)
# -------------------------------------------------------------------
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

# -------------------------------------------------------------------
# Celery Configuration (Development - Synchronous Execution)
# -------------------------------------------------------------------
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# -------------------------------------------------------------------
# Logging Configuration (Development - Verbose)
# -------------------------------------------------------------------
LOGGING["loggers"]["monitors.audit"]["level"] = "DEBUG"  # type: ignore  # noqa: F405
LOGGING["loggers"]["monitors.prober"]["level"] = "DEBUG"  # type: ignore  # noqa: F405

_sentry_cfg = configure_sentry(env, default_environment="development")  # noqa: F405
SENTRY_DSN = _sentry_cfg["dsn"]
SENTRY_TRACES_SAMPLE_RATE = _sentry_cfg["traces_sample_rate"]
if "environment" in _sentry_cfg:
    SENTRY_ENVIRONMENT = _sentry_cfg["environment"]
