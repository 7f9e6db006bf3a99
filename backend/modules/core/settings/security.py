"""Security-related settings helpers shared across environments."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_DEV_CSRF_TRUSTED = [
    "http://localhost:3000",
    "https://localhost:3000",
    "https://pingwatch.local",
]

_PROD_DEFAULT_CSRF = [
    "https://pingwatch.local",
    "https://*.pingwatch.local",
]


def get_dev_csrf_trusted_origins() -> list[str]:
    return list(_DEV_CSRF_TRUSTED)


def get_prod_csrf_trusted_origins(env) -> list[str]:
    return env.list("CSRF_TRUSTED_ORIGINS", default=_PROD_DEFAULT_CSRF)


def get_dev_https_settings() -> Mapping[str, Any]:
    return {
        "ENFORCE_HTTPS": False,
        "SECURE_SSL_REDIRECT": False,
        "SECURE_HSTS_SECONDS": 0,
        "SECURE_HSTS_INCLUDE_SUBDOMAINS": False,
        "SECURE_HSTS_PRELOAD": False,
        "SECURE_PROXY_SSL_HEADER": ("HTTP_X_FORWARDED_PROTO", "https"),
        "SESSION_COOKIE_SECURE": False,
        "CSRF_COOKIE_SECURE": False,
        "SESSION_COOKIE_HTTPONLY": True,
        "CSRF_COOKIE_HTTPONLY": True,
    }


def get_prod_https_settings(env) -> Mapping[str, Any]:
    enforce_https = env.bool("ENFORCE_HTTPS", default=True)
    hsts_seconds = env.int("SECURE_HSTS_SECONDS", default=3600) if enforce_https else 0
    hsts_include = (
        env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True) if enforce_https else False
    )

    return {
        "ENFORCE_HTTPS": enforce_https,
        "SECURE_SSL_REDIRECT": enforce_https,
        "SECURE_HSTS_SECONDS": hsts_seconds,
        "SECURE_HSTS_INCLUDE_SUBDOMAINS": hsts_include,
        "SECURE_HSTS_PRELOAD": False,
        "SECURE_PROXY_SSL_HEADER": ("HTTP_X_FORWARDED_PROTO", "https"),
        "SESSION_COOKIE_SECURE": enforce_https,
        "CSRF_COOKIE_SECURE": enforce_https,
        "SESSION_COOKIE_HTTPONLY": True,
        "CSRF_COOKIE_HTTPONLY": True,
    }


def get_dev_security_headers() -> Mapping[str, Any]:
    return {
        "X_FRAME_OPTIONS": "DENY",
        "SECURE_CONTENT_TYPE_NOSNIFF": True,
        "SECURE_REFERRER_POLICY": "same-origin",
    }


def get_prod_security_headers() -> Mapping[str, Any]:
    return {
        "SECURE_CROSS_ORIGIN_OPENER_POLICY": "same-origin",
        "X_FRAME_OPTIONS": "DENY",
        "SECURE_CONTENT_TYPE_NOSNIFF": True,
        "SECURE_REFERRER_POLICY": "same-origin",
    }
