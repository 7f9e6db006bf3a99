"""Settings router for PingWatch."""

import os

from modules.core.settings import setup_settings_logging

# -------------------------------------------------------------------
# Environment Detection + Logging (shared helper)
# -------------------------------------------------------------------
logging_context = setup_settings_logging()
settings_logger = logging_context.logger
environment = logging_context.environment

if environment == "development":
    from app.settings_development import *  # noqa: F403, F401

    settings_logger.info("✅ Development settings loaded successfully")
    settings_logger.info("   - DEBUG: True")
    settings_logger.info("   - Email: Console backend")
    settings_logger.info("   - Celery: Eager execution")
    settings_logger.info("   - Sentry: Disabled")
elif environment == "test":
    from app.settings_test import *  # noqa: F403, F401

    settings_logger.info("✅ Test settings loaded successfully")
else:
    from app.settings_production import *  # noqa: F403, F401

    settings_logger.info("✅ Production settings loaded successfully")
    settings_logger.info("   - DEBUG: False")
    settings_logger.info("   - ALLOWED_HOSTS: From env (strict)")
    settings_logger.info("   - HTTPS: Enforced")
    settings_logger.info("   - Email: SMTP backend")

    sentry_dsn = os.environ.get("SENTRY_DSN", "")
    if sentry_dsn:
        settings_logger.info(
            f"   - Sentry: Enabled ({os.environ.get('SENTRY_ENVIRONMENT', 'production')})"
        )
    else:
        settings_logger.info("   - Sentry: Disabled (no DSN)")

settings_logger.info("=" * 70)
