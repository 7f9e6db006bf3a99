"""
Base Django settings for PingWatch (Django 5 + DRF + Celery).

This module contains environment-agnostic settings shared across all environments.
Environment-specific overrides are in settings_development.py, settings_production.py
and settings_test.py.
"""

from modules.core.settings import (
    BASE_DIR,
    build_cache_config,
    build_celery_config,
    build_default_database_config,
    build_email_defaults,
    build_logging_config,
    build_monitoring_config,
    build_plan_limits,
    build_rest_framework_config,
    get_env,
    get_installed_apps,
    get_middleware,
)
from modules.core.settings import (
    LOG_DIR as CORE_LOG_DIR,
)

env = get_env()

# -------------------------------------------------------------------
# File system locations
# -------------------------------------------------------------------
LOG_DIR = CORE_LOG_DIR

# -------------------------------------------------------------------
# Applications / URLs
# -------------------------------------------------------------------
INSTALLED_APPS = get_installed_apps()
ROOT_URLCONF = "app.urls"

# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
# Resolved dynamically so modules can register additional middleware entries.
MIDDLEWARE = list(get_middleware())

# -------------------------------------------------------------------
# Templates
# -------------------------------------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "app.wsgi.application"

DATABASES = build_default_database_config()

# Connection pooling
CONN_MAX_AGE = env.int("DB_CONN_MAX_AGE", default=600)

CACHES = build_cache_config(env)

# -------------------------------------------------------------------
# Internationalization
# -------------------------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# -------------------------------------------------------------------
# Static Files
# -------------------------------------------------------------------
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# -------------------------------------------------------------------
# Default Primary Key Field Type
# -------------------------------------------------------------------
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -------------------------------------------------------------------
# Celery
# -------------------------------------------------------------------
celery_config = build_celery_config(env, timezone=TIME_ZONE)
REDIS_URL = celery_config["REDIS_URL"]
CELERY_BROKER_URL = celery_config["CELERY_BROKER_URL"]
CELERY_RESULT_BACKEND = celery_config["CELERY_RESULT_BACKEND"]
CELERY_TIMEZONE = celery_config["CELERY_TIMEZONE"]
CELERY_TASK_TRACK_STARTED = celery_config["CELERY_TASK_TRACK_STARTED"]
CELERY_TASK_ALWAYS_EAGER = celery_config["CELERY_TASK_ALWAYS_EAGER"]
CELERY_ACCEPT_CONTENT = celery_config["CELERY_ACCEPT_CONTENT"]
CELERY_TASK_SERIALIZER = celery_config["CELERY_TASK_SERIALIZER"]
CELERY_RESULT_SERIALIZER = celery_config["CELERY_RESULT_SERIALIZER"]
CELERY_BEAT_SCHEDULE = celery_config["CELERY_BEAT_SCHEDULE"]

# -------------------------------------------------------------------
# Monitoring cycle / retention / notifications
# -------------------------------------------------------------------
monitoring_config = build_monitoring_config(env)
CRON_SECRET = monitoring_config["CRON_SECRET"]
HEALTH_CHECK_BATCH_SIZE = monitoring_config["HEALTH_CHECK_BATCH_SIZE"]
HEALTH_CHECK_RETENTION_DAYS = monitoring_config["HEALTH_CHECK_RETENTION_DAYS"]
HEALTH_CHECK_CYCLE_LOCK_SECONDS = monitoring_config["HEALTH_CHECK_CYCLE_LOCK_SECONDS"]
NOTIFICATION_TIMEOUT_SECONDS = monitoring_config["NOTIFICATION_TIMEOUT_SECONDS"]
SUBSCRIBER_EMAIL_BATCH_SIZE = monitoring_config["SUBSCRIBER_EMAIL_BATCH_SIZE"]

PLAN_LIMITS = build_plan_limits()
DEFAULT_PLAN = env("DEFAULT_PLAN", default="free")

# -------------------------------------------------------------------
# Admin Panel
# -------------------------------------------------------------------
ADMIN_URL = env("ADMIN_URL", default="admin/")

# -------------------------------------------------------------------
# REST Framework Configuration
# -------------------------------------------------------------------
REST_FRAMEWORK = build_rest_framework_config()

# -------------------------------------------------------------------
# Email Configuration (base settings)
# -------------------------------------------------------------------
_email_defaults = build_email_defaults(env)
EMAIL_HOST = _email_defaults["EMAIL_HOST"]
EMAIL_PORT = _email_defaults["EMAIL_PORT"]
EMAIL_USE_TLS = _email_defaults["EMAIL_USE_TLS"]
EMAIL_HOST_USER = _email_defaults["EMAIL_HOST_USER"]
EMAIL_HOST_PASSWORD = _email_defaults["EMAIL_HOST_PASSWORD"]
DEFAULT_FROM_EMAIL = _email_defaults["DEFAULT_FROM_EMAIL"]
SERVER_EMAIL = _email_defaults["SERVER_EMAIL"]
FRONTEND_URL = _email_defaults["FRONTEND_URL"]
NOTIFICATIONS_FROM_DOMAIN = _email_defaults["NOTIFICATIONS_FROM_DOMAIN"]

# -------------------------------------------------------------------
# Logging Configuration (shared base)
# -------------------------------------------------------------------
LOGGING = build_logging_config()
