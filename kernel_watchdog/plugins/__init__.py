"""Notification-only extension hooks.

Plugins subclass :class:`WatchdogPlugin` and are discovered through the
``kernel_watchdog.plugins`` entry point group or registered directly. They
are called in ascending ``priority`` order; a failing hook is logged and the
remaining plugins still run.
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Iterable

from kernel_watchdog.models import LogEntry, MetricsSnapshot

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "kernel_watchdog.plugins"


class WatchdogPlugin:
    name = "plugin"
    version = "0.1"
    description = ""
    priority = 100

    def on_start(self) -> None:
        pass

    def on_tick(self, snapshot: MetricsSnapshot) -> None:
        pass

    def on_alert(self, entry: LogEntry) -> None:
        pass


class PluginManager:
    def __init__(self, plugins: Iterable[WatchdogPlugin] = ()) -> None:
        self._plugins: list[WatchdogPlugin] = []
        for plugin in plugins:
            self.register(plugin)

    @property
    def plugins(self) -> list[WatchdogPlugin]:
        return list(self._plugins)

    def register(self, plugin: WatchdogPlugin) -> None:
        self._plugins.append(plugin)
        self._plugins.sort(key=lambda item: item.priority)

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> int:
        loaded = 0
        for entry_point in entry_points(group=group):
            try:
                plugin_cls = entry_point.load()
                plugin = plugin_cls()
            except Exception:
                logger.exception("No se pudo cargar el plugin '%s'", entry_point.name)
                continue
            self.register(plugin)
            logger.info("Plugin cargado: %s %s", plugin.name, plugin.version)
            loaded += 1
        return loaded

    def notify_start(self) -> None:
        for plugin in self._plugins:
            try:
                plugin.on_start()
            except Exception:
                logger.exception("Plugin '%s' falló en on_start", plugin.name)

    def notify_tick(self, snapshot: MetricsSnapshot) -> None:
        for plugin in self._plugins:
            try:
                plugin.on_tick(snapshot)
            except Exception:
                logger.exception("Plugin '%s' falló en on_tick", plugin.name)

    def notify_alert(self, entry: LogEntry) -> None:
        for plugin in self._plugins:
            try:
                plugin.on_alert(entry)
            except Exception:
                logger.exception("Plugin '%s' falló en on_alert", plugin.name)


__all__ = ["ENTRY_POINT_GROUP", "PluginManager", "WatchdogPlugin"]
