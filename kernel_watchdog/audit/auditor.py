"""Kernel event auditor: ring buffer plus external sources into the ledger."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Iterable

from kernel_watchdog.core.store import SnapshotStore
from kernel_watchdog.data.commands import CommandRunner, command_exists, run_command
from kernel_watchdog.models import LogEntry

from .kmsg import KmsgReader
from .sources import CommandLogSource, classify_lines, default_sources

if TYPE_CHECKING:
    from kernel_watchdog.plugins import PluginManager

logger = logging.getLogger(__name__)


class KernelAuditor:
    """Merges ring-buffer records and log-source lines into the alert ledger."""

    def __init__(
        self,
        store: SnapshotStore,
        reader: KmsgReader | None = None,
        sources: Iterable[CommandLogSource] | None = None,
        runner: CommandRunner = run_command,
        exists: Callable[[str], bool] = command_exists,
        plugins: "PluginManager | None" = None,
    ) -> None:
        self._store = store
        self._reader = reader if reader is not None else KmsgReader()
        self._sources = list(sources) if sources is not None else default_sources()
        self._runner = runner
        self._exists = exists
        self._plugins = plugins
        self.last_scan: float | None = None

    @property
    def reader(self) -> KmsgReader:
        return self._reader

    def start(self) -> bool:
        return self._reader.start()

    def stop(self) -> None:
        self._reader.stop()

    def collect(self) -> list[LogEntry]:
        """Gather candidates from every source without touching the ledger."""

        candidates = self._reader.drain()
        for source in self._sources:
            if not source.available(self._exists):
                continue
            lines = source.fetch(self._runner)
            candidates.extend(classify_lines(lines, source.source))
        return candidates

    def scan(self) -> list[LogEntry]:
        """One audit pass. Returns the entries newly admitted to the ledger."""

        admitted = self._store.admit(self.collect())
        for entry in admitted:
            logger.log(entry.severity.log_level, "[%s] %s", entry.subsystem.value, entry.message)
            if self._plugins is not None:
                self._plugins.notify_alert(entry)
        self.last_scan = time.time()
        return admitted

    def alerts(self) -> int:
        return self._store.alert_count()
