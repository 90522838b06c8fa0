"""Core utilities: configuration, logging, collector and shared store."""

from __future__ import annotations

from .config import APP_NAME, CONFIG, VERSION, WatchdogConfig, load_config

__all__ = [
    "APP_NAME",
    "CONFIG",
    "VERSION",
    "WatchdogConfig",
    "load_config",
]
