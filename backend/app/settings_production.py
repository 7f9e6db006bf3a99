"""
Production settings for PingWatch.

Optimized for production deployment with strict security and validation.
"""

import sys

from modules.core.settings import (
    configure_sentry,
    get_prod_csrf_trusted_origins,
    get_prod_https_settings,
    get_prod_security_headers,
)

from app.settings_base import *  # noqa: F403, F401

# -------------------------------------------------------------------
# Core Production Settings
# -------------------------------------------------------------------
DEBUG = env.bool("DEBUG", default=False)  # noqa: F405

# -------------------------------------------------------------------
# Secret Key Validation (Production)
# -------------------------------------------------------------------
SECRET_KEY = env("SECRET_KEY", default=None)  # noqa: F405

_KEY_HINT = (
    "Generate a secure key with: python -c 'from django.core.management.utils "
    "import get_random_secret_key; print(get_random_secret_key())'"
)

if not SECRET_KEY:
    raise ValueError(
        "SECRET_KEY is not set. Please set it in your .env file or environment variables.\n"
        + _KEY_HINT
    )

if SECRET_KEY.startswith("django-insecure"):
    raise ValueError("Cannot use 'django-insecure' SECRET_KEY in production.\n" + _KEY_HINT)

if len(SECRET_KEY) < 50:
    raise ValueError("SECRET_KEY must be at least 50 characters long in production.\n" + _KEY_HINT)

# -------------------------------------------------------------------
# Allowed Hosts (Production - Strict)
# -------------------------------------------------------------------
ALLOWED_HOSTS = env.list(  # noqa: F405
    "ALLOWED_HOSTS",
    default=["pingwatch.local", ".pingwatch.local"],
)

# -------------------------------------------------------------------
# CSRF / HTTPS / headers (Production - Strict)
# -------------------------------------------------------------------
CSRF_TRUSTED_ORIGINS = get_prod_csrf_trusted_origins(env)  # noqa: F405
globals().update(get_prod_https_settings(env))  # noqa: F405
globals().update(get_prod_security_headers())

# -------------------------------------------------------------------
# Cron secret validation (Production)
# -------------------------------------------------------------------
management_commands_skip_validation = [
    "makemigrations",
    "migrate",
    "shell",
    "dbshell",
    "showmigrations",
    "sqlmigrate",
    "createsuperuser",
    "collectstatic",
]

should_validate = not any(cmd in sys.argv for cmd in management_commands_skip_validation)

if should_validate and len(CRON_SECRET) < 32:  # noqa: F405
    raise ValueError(
        "CRON_SECRET must be set to at least 32 characters in production.\n"
        "The /cron/check and /cron/cleanup endpoints reject every request without it."
    )

# -------------------------------------------------------------------
# Email Configuration (Production - SMTP)
# -------------------------------------------------------------------
EMAIL_BACKEND = env(  # noqa: F405
    "EMAIL_BACKEND", default="django.core.mail.backends.smtp.EmailBackend"
)

# -------------------------------------------------------------------
# Sentry Configuration (Production - Error & Performance Monitoring)
# -------------------------------------------------------------------
_sentry_cfg = configure_sentry(env)  # noqa: F405
SENTRY_DSN = _sentry_cfg["dsn"]
SENTRY_TRACES_SAMPLE_RATE = _sentry_cfg["traces_sample_rate"]
if "environment" in _sentry_cfg:
    SENTRY_ENVIRONMENT = _sentry_cfg["environment"]
