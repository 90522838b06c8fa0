"""Example plugin: warn when aggregate CPU stays above a limit."""

from __future__ import annotations

import logging

from kernel_watchdog.models import MetricsSnapshot

from . import WatchdogPlugin

logger = logging.getLogger(__name__)


class CpuAlertPlugin(WatchdogPlugin):
    name = "cpu-alert"
    version = "0.1"
    description = "High CPU"
    priority = 50

    def __init__(self, limit: float = 95.0) -> None:
        self.limit = limit
        self.triggered = 0

    def on_start(self) -> None:
        logger.info("[cpu-alert] cargado")

    def on_tick(self, snapshot: MetricsSnapshot) -> None:
        if snapshot.cpu.usage_percent > self.limit:
            self.triggered += 1
            logger.warning("[cpu-alert] CPU>%.0f%% (%.1f%%)", self.limit, snapshot.cpu.usage_percent)
