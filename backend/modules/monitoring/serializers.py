"""Validation for monitors, notification channels and incident updates."""

from __future__ import annotations

from ipaddress import ip_address, ip_network
from urllib.parse import urlparse

from rest_framework import serializers

from .channels import parse_channel_config
from .constants import HTTP_METHODS, ChannelType, IncidentStatus
from .exceptions import ChannelConfigError
from .models import Monitor, NotificationChannel
from .policy import default_policy

PRIVATE_NETWORKS = (
    ip_network("10.0.0.0/8"),
    ip_network("172.16.0.0/12"),
    ip_network("192.168.0.0/16"),
    ip_network("127.0.0.0/8"),
    ip_network("169.254.0.0/16"),
    ip_network("::1/128"),
    ip_network("fe80::/10"),
    ip_network("fc00::/7"),
)


def validate_public_http_url(value: str) -> str:
    """Reject non-HTTP schemes and literal private/loopback addresses (SSRF guard)."""

    try:
        parsed = urlparse(value)
    except ValueError:
        raise serializers.ValidationError("Invalid URL format.") from None

    if parsed.scheme not in ("http", "https"):
        raise serializers.ValidationError("Only HTTP and HTTPS protocols are supported.")

    if not parsed.hostname:
        raise serializers.ValidationError("URL must include a hostname.")

    try:
        addr = ip_address(parsed.hostname)
    except ValueError:
        # Hostname rather than an IP literal.
        return value

    if any(addr in network for network in PRIVATE_NETWORKS):
        raise serializers.ValidationError(
            "Cannot monitor private IP addresses or internal services."
        )
    return value


class PolicyAwareSerializer(serializers.ModelSerializer):
    """Reads the plan policy and the acting account from serializer context."""

    def get_policy(self):
        return self.context.get("policy") or default_policy

    def get_owner(self):
        owner = self.context.get("owner")
        if owner is not None:
            return owner
        request = self.context.get("request")
        return getattr(request, "user", None)


class MonitorSerializer(PolicyAwareSerializer):
    component_name = serializers.CharField(source="component.name", read_only=True, default=None)
    method = serializers.CharField(max_length=8, required=False, default="GET")

    class Meta:
        model = Monitor
        fields = [
            "id",
            "name",
            "url",
            "method",
            "expected_status",
            "check_interval_seconds",
            "timeout_ms",
            "component",
            "component_name",
            "is_active",
            "is_paused",
            "last_check_at",
            "last_status",
            "last_response_time_ms",
            "created_at",
            "updated_at",
        ]
        read_only_fields = (
            "id",
            "component_name",
            "last_check_at",
            "last_status",
            "last_response_time_ms",
            "created_at",
            "updated_at",
        )

    def validate_url(self, value: str) -> str:
        return validate_public_http_url(value)

    def validate_method(self, value: str) -> str:
        method = value.upper()
        if method not in HTTP_METHODS:
            raise serializers.ValidationError(f"Unsupported HTTP method: {value}.")
        return method

    def validate_expected_status(self, value: int) -> int:
        if not 100 <= value <= 599:
            raise serializers.ValidationError("Expected status must be a valid HTTP status code.")
        return value

    def validate_timeout_ms(self, value: int) -> int:
        if value < 1000 or value > 30_000:
            raise serializers.ValidationError("Timeout must be between 1000 and 30000 ms.")
        return value

    def validate_check_interval_seconds(self, value: int) -> int:
        if value > 24 * 60 * 60:
            raise serializers.ValidationError("Interval cannot exceed 24 hours.")
        minimum = self.get_policy().min_check_interval_seconds(self.get_owner())
        if value < minimum:
            raise serializers.ValidationError(
                f"Your plan allows a minimum check interval of {minimum} seconds."
            )
        return value

    def validate_component(self, value):
        owner = self.get_owner()
        if value is not None and owner is not None and value.status_page.owner_id != owner.pk:
            raise serializers.ValidationError("Component not found.")
        return value

    def validate(self, attrs):
        if self.instance is None and "check_interval_seconds" not in attrs:
            # New monitors without an explicit interval start at the plan minimum.
            default = Monitor._meta.get_field("check_interval_seconds").default
            minimum = self.get_policy().min_check_interval_seconds(self.get_owner())
            attrs["check_interval_seconds"] = max(default, minimum)
        return attrs


class NotificationChannelSerializer(PolicyAwareSerializer):
    class Meta:
        model = NotificationChannel
        fields = ["id", "name", "type", "config", "status_page", "is_active", "created_at"]
        read_only_fields = ("id", "created_at")

    def validate_type(self, value: str) -> str:
        allowed = self.get_policy().allowed_channel_types(self.get_owner())
        if value not in allowed:
            raise serializers.ValidationError(
                f"{ChannelType(value).label} notifications are not available on your plan."
            )
        return value

    def validate_status_page(self, value):
        owner = self.get_owner()
        if value is not None and owner is not None and value.owner_id != owner.pk:
            raise serializers.ValidationError("Status page not found.")
        return value

    def validate(self, attrs):
        channel_type = attrs.get("type", getattr(self.instance, "type", None))
        config = attrs.get("config", getattr(self.instance, "config", None))
        try:
            parsed = parse_channel_config(channel_type, config)
        except ChannelConfigError as exc:
            raise serializers.ValidationError({"config": str(exc)}) from exc

        target = getattr(parsed, "webhook_url", None) or getattr(parsed, "url", None)
        if target is not None:
            try:
                validate_public_http_url(target)
            except serializers.ValidationError as exc:
                raise serializers.ValidationError({"config": exc.detail}) from exc
        return attrs


class IncidentUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=IncidentStatus.choices)
    message = serializers.CharField(max_length=5000)


class UptimeQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, default=90)


__all__ = [
    "IncidentUpdateSerializer",
    "MonitorSerializer",
    "NotificationChannelSerializer",
    "UptimeQuerySerializer",
    "validate_public_http_url",
]
