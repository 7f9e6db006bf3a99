"""Settings-loader logging and environment routing."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

_ENV_TRUE_VALUES = {"1", "true", "yes", "on"}
_KNOWN_ENVIRONMENTS = ("production", "development", "test")


@dataclass(frozen=True, slots=True)
class SettingsLoggingContext:
    """Which environment was selected, why, and where the loader logs go."""

    logger: logging.Logger
    base_dir: Path
    log_dir: Path
    environment: str
    source: str


def setup_settings_logging(
    *,
    env: Mapping[str, str] | None = None,
    logger_name: str = "app.settings_loader",
    log_filename: str = "settings.log",
) -> SettingsLoggingContext:
    """Configure the settings loader logger and resolve the target environment."""

    environ = env or os.environ
    base_dir = Path(__file__).resolve().parents[3]
    log_dir = base_dir / "logs"
    log_dir.mkdir(exist_ok=True)

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)
    _attach_handlers(logger, log_dir / log_filename)

    environment, source = resolve_environment(environ)
    logger.info(
        "%s mode selected via %s (settings module app.settings_%s, BASE_DIR=%s, LOG_DIR=%s)",
        environment.upper(),
        source,
        environment,
        base_dir,
        log_dir,
    )

    return SettingsLoggingContext(
        logger=logger,
        base_dir=base_dir,
        log_dir=log_dir,
        environment=environment,
        source=source,
    )


def resolve_environment(environ: Mapping[str, str]) -> tuple[str, str]:
    """Pick the settings overlay; anything unrecognised falls back to production."""

    django_env = environ.get("DJANGO_ENV", "").strip().lower()
    if django_env in _KNOWN_ENVIRONMENTS:
        return django_env, f"DJANGO_ENV={django_env}"

    if environ.get("DEBUG", "false").strip().lower() in _ENV_TRUE_VALUES:
        return "development", "DEBUG override"
    return "production", "default fail-safe"


def _attach_handlers(logger: logging.Logger, log_path: Path) -> None:
    if not any(
        isinstance(handler, RotatingFileHandler)
        and getattr(handler, "baseFilename", None) == str(log_path)
        for handler in logger.handlers
    ):
        file_handler = RotatingFileHandler(log_path, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(
            logging.Formatter("[%(levelname)s] %(asctime)s %(name)s - %(message)s")
        )
        logger.addHandler(file_handler)

    if not any(type(handler) is logging.StreamHandler for handler in logger.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s - %(message)s"))
        logger.addHandler(console_handler)
