"""Background workers: metrics collection and kernel auditing."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from kernel_watchdog.audit import KernelAuditor, KmsgReader, default_sources
from kernel_watchdog.core.collector import MetricsCollector
from kernel_watchdog.core.config import CONFIG, WatchdogConfig
from kernel_watchdog.core.store import SnapshotStore
from kernel_watchdog.diagnostics import DiagnosticAssistant, DiagnosticClient
from kernel_watchdog.plugins import PluginManager

logger = logging.getLogger(__name__)


class Watchdog:
    """Owns the store and the two worker threads.

    Both loops share one stop event; :meth:`stop` sets it and joins the
    threads, so no worker outlives the instance.
    """

    def __init__(
        self,
        config: WatchdogConfig = CONFIG,
        store: SnapshotStore | None = None,
        collector: MetricsCollector | None = None,
        auditor: KernelAuditor | None = None,
        assistant: DiagnosticAssistant | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self.config = config
        self.store = store or SnapshotStore(
            history_window=config.history.window,
            ledger_capacity=config.ledger.capacity,
        )
        self.plugins = plugins if plugins is not None else PluginManager()
        self.collector = collector or MetricsCollector(self.store, sources=config.sources)
        self.auditor = auditor or KernelAuditor(
            self.store,
            reader=KmsgReader(config.sources.kmsg),
            sources=default_sources(config.ledger.source_lines),
            plugins=self.plugins,
        )
        self.assistant = assistant or DiagnosticAssistant(DiagnosticClient(config.diagnostics))
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        self._scan_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self.plugins.notify_start()
        if not self.auditor.start():
            logger.warning("Sin acceso al buffer del kernel; solo fuentes externas")
        self._threads = [
            threading.Thread(
                target=self._loop,
                args=(self.collect_once, self.config.intervals.collector),
                name="MetricsCollector",
                daemon=True,
            ),
            threading.Thread(
                target=self._loop,
                args=(self.scan_now, self.config.intervals.auditor),
                name="KernelAuditor",
                daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()
        logger.info("Watchdog iniciado")

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        for thread in self._threads:
            if thread.is_alive():
                thread.join(timeout=timeout)
        self._threads = []
        self.auditor.stop()
        logger.info("Watchdog detenido")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until :meth:`stop` is requested or ``timeout`` elapses."""

        return self._stop.wait(timeout)

    def request_stop(self) -> None:
        self._stop.set()

    def collect_once(self) -> None:
        snapshot = self.collector.sample()
        self.plugins.notify_tick(snapshot)

    def scan_now(self) -> int:
        """Run one audit pass; concurrent callers are serialised."""

        with self._scan_lock:
            return len(self.auditor.scan())

    def analyze_now(self) -> bool:
        return self.assistant.analyze(self.store, self.config.ledger.analyze_lines)

    def _loop(self, step: Callable[[], object], interval: float) -> None:
        while not self._stop.is_set():
            started = time.perf_counter()
            try:
                step()
            except Exception:
                logger.exception("Error inesperado en el ciclo %s", threading.current_thread().name)
            elapsed = time.perf_counter() - started
            self._stop.wait(max(0.1, interval - elapsed))
