"""Domain errors raised by the health-check core."""

from __future__ import annotations


class MonitoringError(Exception):
    """Base class for monitoring failures."""


class CycleError(MonitoringError):
    """The monitor list could not be read; the whole cycle is aborted."""


class ChannelConfigError(MonitoringError):
    """A notification channel carries a type or config the dispatcher cannot use."""

    def __init__(self, channel_type: str, message: str) -> None:
        super().__init__(f"{channel_type}: {message}")
        self.channel_type = channel_type


class DeliveryError(MonitoringError):
    """A single channel delivery failed (transport error or non-2xx response)."""


class RetentionError(MonitoringError):
    """Deleting expired health checks failed."""


__all__ = [
    "ChannelConfigError",
    "CycleError",
    "DeliveryError",
    "MonitoringError",
    "RetentionError",
]
