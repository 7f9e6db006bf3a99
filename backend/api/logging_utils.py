"""Utilities for keeping log output free of secrets."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

# Patterns for secrets that must never be written to disk.
_PATTERNS = (
    # Database / cache / broker connection strings
    (
        re.compile(r"(?i)(?:postgres(?:ql)?|mysql|redis|mongodb|amqp)://[^\s]+"),
        "[REDACTED_DSN]",
    ),
    # Bearer tokens (cron secret, API tokens)
    (
        re.compile(r"Bearer\s+[A-Za-z0-9_\-\.~+/=]+"),
        "Bearer [REDACTED_TOKEN]",
    ),
    # Slack incoming-webhook URLs embed their credential in the path
    (
        re.compile(r"https://hooks\.slack\.com/services/[^\s\"']+"),
        "https://hooks.slack.com/services/[REDACTED]",
    ),
)

_SECRET_KEYS = frozenset({"secret", "authorization", "x-webhook-secret", "webhook_url"})


def _sanitize_str(value: str) -> str:
    sanitized = value
    for pattern, replacement in _PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def sanitize_log_value(value: Any) -> Any:
    """Recursively sanitize log payloads before writing to disk."""
    if isinstance(value, str):
        return _sanitize_str(value)

    if isinstance(value, Mapping):
        return {
            k: "[REDACTED]"
            if isinstance(k, str) and k.lower() in _SECRET_KEYS and v
            else sanitize_log_value(v)
            for k, v in value.items()
        }

    if isinstance(value, list):
        return [sanitize_log_value(item) for item in value]

    if isinstance(value, tuple):
        return tuple(sanitize_log_value(item) for item in value)

    if isinstance(value, set):
        return {sanitize_log_value(item) for item in value}

    return value
