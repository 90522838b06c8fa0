"""Headless mode: threshold warnings, periodic summary, PID file."""

from __future__ import annotations

import logging
import os
import signal
import time
from pathlib import Path

from kernel_watchdog.core.config import CONFIG, Thresholds, WatchdogConfig
from kernel_watchdog.models import MetricsSnapshot
from kernel_watchdog.runtime import Watchdog

logger = logging.getLogger(__name__)


def evaluate_thresholds(snapshot: MetricsSnapshot, thresholds: Thresholds) -> list[tuple[int, str]]:
    """Return ``(logging level, message)`` pairs for every crossed limit.

    Load limits scale with the number of logical CPUs.
    """

    findings: list[tuple[int, str]] = []

    memory = snapshot.memory.percent
    if memory >= thresholds.memory_crit:
        findings.append((logging.CRITICAL, f"Memoria crítica: {memory:.1f}%"))
    elif memory >= thresholds.memory_warn:
        findings.append((logging.WARNING, f"Memoria alta: {memory:.1f}%"))

    cpus = max(1, snapshot.cpu.logical_cores)
    load = snapshot.system.load_1
    if load >= cpus * thresholds.load_crit:
        findings.append((logging.CRITICAL, f"Carga crítica: {load:.2f} ({cpus} CPUs)"))
    elif load >= cpus * thresholds.load_warn:
        findings.append((logging.WARNING, f"Carga alta: {load:.2f} ({cpus} CPUs)"))

    for reading in snapshot.temperatures:
        if reading.celsius >= thresholds.temp_crit:
            findings.append((logging.CRITICAL, f"Temperatura crítica {reading.label}: {reading.celsius:.1f}°C"))
        elif reading.celsius >= thresholds.temp_warn:
            findings.append((logging.WARNING, f"Temperatura alta {reading.label}: {reading.celsius:.1f}°C"))
    return findings


def summary_line(snapshot: MetricsSnapshot, alert_count: int) -> str:
    return (
        f"RPT cpu:{snapshot.cpu.usage_percent:.0f}% ram:{snapshot.memory.percent:.0f}% "
        f"ld:{snapshot.system.load_1:.2f} al:{alert_count} t:0x{snapshot.taint.mask:x}"
    )


def write_pid_file(path: Path) -> bool:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{os.getpid()}\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("No se pudo escribir el PID en %s: %s", path, exc)
        return False
    return True


def remove_pid_file(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("No se pudo eliminar %s: %s", path, exc)


class Daemon:
    """Drives a :class:`Watchdog` until a termination signal arrives."""

    def __init__(self, watchdog: Watchdog, config: WatchdogConfig = CONFIG) -> None:
        self.watchdog = watchdog
        self.config = config
        self._report_requested = False
        self._last_report = time.monotonic()

    def request_report(self, *_args: object) -> None:
        self._report_requested = True

    def request_stop(self, *_args: object) -> None:
        self.watchdog.request_stop()

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGTERM, self.request_stop)
        signal.signal(signal.SIGINT, self.request_stop)
        signal.signal(signal.SIGUSR1, self.request_report)

    def check(self) -> list[tuple[int, str]]:
        """Evaluate thresholds once and emit the summary line when due."""

        snapshot = self.watchdog.store.snapshot()
        findings = evaluate_thresholds(snapshot, self.config.thresholds)
        for level, message in findings:
            logger.log(level, message)

        now = time.monotonic()
        if self._report_requested or now - self._last_report >= self.config.intervals.report:
            logger.info(summary_line(snapshot, self.watchdog.store.alert_count()))
            self._report_requested = False
            self._last_report = now
        return findings

    def run(self) -> None:
        self.watchdog.start()
        try:
            while not self.watchdog.wait(self.config.intervals.auditor):
                self.check()
        finally:
            self.watchdog.stop()


def run_daemon(config: WatchdogConfig = CONFIG) -> int:
    pid_file = config.paths.pid_file
    write_pid_file(pid_file)
    watchdog = Watchdog(config)
    watchdog.plugins.load_entry_points()
    daemon = Daemon(watchdog, config)
    daemon.install_signal_handlers()
    logger.info("Daemon iniciado (pid %d)", os.getpid())
    try:
        daemon.run()
    finally:
        remove_pid_file(pid_file)
        logger.info("Daemon detenido")
    return 0
