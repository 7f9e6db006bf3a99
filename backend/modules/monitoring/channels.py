"""Typed notification channel configs and the transports that deliver to them."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests
from django.conf import settings

from .constants import ChannelType
from .dto import NotificationEvent
from .exceptions import ChannelConfigError, DeliveryError

logger = logging.getLogger("notifications")


@dataclass(slots=True, frozen=True)
class SlackConfig:
    webhook_url: str


@dataclass(slots=True, frozen=True)
class WebhookConfig:
    url: str
    secret: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class SmsConfig:
    phone_number: str
    country_code: str | None = None


ChannelConfig = SlackConfig | WebhookConfig | SmsConfig


def _required_str(channel_type: str, raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ChannelConfigError(channel_type, f"'{key}' is required")
    return value.strip()


def parse_channel_config(channel_type: str, raw: Any) -> ChannelConfig:
    """Turn the stored JSON config of a channel into its typed form.

    Raises ``ChannelConfigError`` for unknown channel types or configs that
    lack the fields their transport needs.
    """

    if not isinstance(raw, Mapping):
        raise ChannelConfigError(channel_type, "config must be an object")

    if channel_type == ChannelType.SLACK:
        return SlackConfig(webhook_url=_required_str(channel_type, raw, "webhook_url"))

    if channel_type == ChannelType.WEBHOOK:
        headers = raw.get("headers") or {}
        if not isinstance(headers, Mapping) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in headers.items()
        ):
            raise ChannelConfigError(channel_type, "'headers' must map strings to strings")
        secret = raw.get("secret") or None
        if secret is not None and not isinstance(secret, str):
            raise ChannelConfigError(channel_type, "'secret' must be a string")
        return WebhookConfig(
            url=_required_str(channel_type, raw, "url"),
            secret=secret,
            headers=dict(headers),
        )

    if channel_type == ChannelType.SMS:
        country_code = raw.get("country_code") or None
        return SmsConfig(
            phone_number=_required_str(channel_type, raw, "phone_number"),
            country_code=str(country_code) if country_code is not None else None,
        )

    raise ChannelConfigError(str(channel_type), "unknown channel type")


class ChannelTransport(Protocol):
    def send(self, config: Any, event: NotificationEvent) -> None:  # pragma: no cover - interface
        ...


def _post_json(url: str, body: Mapping[str, Any], headers: Mapping[str, str] | None = None) -> None:
    try:
        response = requests.post(
            url,
            json=body,
            headers={"Content-Type": "application/json", **(headers or {})},
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.HTTPError as exc:
        status_code = getattr(exc.response, "status_code", "n/a")
        raise DeliveryError(f"HTTP {status_code} from notification target") from exc
    except requests.RequestException as exc:
        raise DeliveryError(str(exc) or type(exc).__name__) from exc


def build_slack_body(event: NotificationEvent) -> dict[str, Any]:
    headline = event.type.replace("_", " ").upper()
    return {
        "text": f"*{headline}*\n{event.message}",
        "blocks": [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"*{event.status_page_name or 'Status Page'}*\n{event.message}",
                },
            }
        ],
    }


class SlackTransport:
    def send(self, config: SlackConfig, event: NotificationEvent) -> None:
        _post_json(config.webhook_url, build_slack_body(event))


class WebhookTransport:
    def send(self, config: WebhookConfig, event: NotificationEvent) -> None:
        headers = dict(config.headers)
        if config.secret:
            headers["X-Webhook-Secret"] = config.secret
        _post_json(config.url, event.to_payload(), headers)


class SmsTransport:
    """No SMS provider is wired up; deliveries are logged and counted as sent."""

    def send(self, config: SmsConfig, event: NotificationEvent) -> None:
        logger.info(
            "SMS delivery recorded without transport",
            extra={
                "country_code": config.country_code,
                "phone_suffix": config.phone_number[-4:],
                "event_type": event.type,
            },
        )


TRANSPORTS: dict[str, ChannelTransport] = {
    ChannelType.SLACK.value: SlackTransport(),
    ChannelType.WEBHOOK.value: WebhookTransport(),
    ChannelType.SMS.value: SmsTransport(),
}


def deliver(channel_type: str, raw_config: Any, event: NotificationEvent) -> None:
    """Parse the config and send ``event`` through the matching transport.

    Raises ``ChannelConfigError`` or ``DeliveryError``; the caller records the outcome.
    """

    config = parse_channel_config(channel_type, raw_config)
    TRANSPORTS[str(channel_type)].send(config, event)


__all__ = [
    "ChannelConfig",
    "SlackConfig",
    "SmsConfig",
    "TRANSPORTS",
    "WebhookConfig",
    "build_slack_body",
    "deliver",
    "parse_channel_config",
]
