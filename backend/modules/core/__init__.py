"""Core primitives shared by the PingWatch apps."""

from .settings_registry import (
    core_settings_registry,
    get_installed_apps,
    get_middleware,
    register_apps,
    register_middleware,
)

__all__ = [
    "core_settings_registry",
    "register_apps",
    "register_middleware",
    "get_middleware",
    "get_installed_apps",
]
