"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "plugcache",
    "environment": "dev",
    "plugins": {
        "on_fetch_failure": "abort",
    },
    "catalog": {
        "url": "https://plugins.dprint.dev/info.json",
    },
    "http": {
        "timeout_seconds": 30.0,
        "user_agent": "plugcache/0.1.0",
        "max_retries": 3,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "dir": ".dprint-cache",
    },
    "formatting": {
        "indent_width": 4,
        "line_width": 80,
        "new_line_kind": "lf",
    },
}
