"""Metrics collector: one tick of every metric family into one snapshot."""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from typing import Any, Callable, TypeVar

from kernel_watchdog.data import (
    CPUCounter,
    NetworkCounter,
    collect_cpu_stats,
    collect_disk_stats,
    collect_gpu_stats,
    collect_memory_stats,
    collect_network_stats,
    collect_pressure_stats,
    collect_system_stats,
    collect_taint_stats,
    collect_temperatures,
)
from kernel_watchdog.data.commands import CommandRunner, run_command
from kernel_watchdog.data.cpu import logical_cpu_count
from kernel_watchdog.models import (
    CPUStats,
    DiskStats,
    GPUStats,
    MemoryStats,
    MetricsSnapshot,
    NetworkStats,
    PressureStats,
    SystemStats,
    TaintStats,
)

from .config import SourcePaths
from .store import SnapshotStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetricsCollector:
    """Samples ``/proc``, ``/sys`` and GPU utilities and publishes snapshots.

    Counter state (previous CPU ticks, previous network bytes) lives here and
    is touched only by the thread calling :meth:`sample`.
    """

    def __init__(
        self,
        store: SnapshotStore,
        sources: SourcePaths | None = None,
        runner: CommandRunner = run_command,
        clock: Callable[[], float] = time.monotonic,
        use_nvml: bool = True,
    ) -> None:
        self._store = store
        self._sources = sources or SourcePaths()
        self._runner = runner
        self._use_nvml = use_nvml
        self._cpu_counter = CPUCounter()
        self._net_counter = NetworkCounter(clock)
        self._failures_lock = threading.Lock()
        self._provider_failures: defaultdict[str, int] = defaultdict(int)
        self._last_error: dict[str, Any] | None = None

    @property
    def store(self) -> SnapshotStore:
        return self._store

    def sample(self) -> MetricsSnapshot:
        """Gather all families, publish the result and return it."""

        proc = self._sources.proc
        sys_root = self._sources.sys
        snapshot = MetricsSnapshot(
            timestamp=time.time(),
            cpu=self._safe_call(
                "cpu",
                lambda: collect_cpu_stats(self._cpu_counter, proc),
                # the core count does not depend on /proc/stat
                CPUStats(logical_cores=logical_cpu_count()),
            ),
            memory=self._safe_call("memory", lambda: collect_memory_stats(proc), MemoryStats()),
            gpu=self._safe_call(
                "gpu",
                lambda: collect_gpu_stats(sys_root, self._runner, use_nvml=self._use_nvml),
                GPUStats(),
            ),
            disk=self._safe_call("disk", lambda: collect_disk_stats(self._sources.root), DiskStats()),
            network=self._safe_call(
                "network",
                lambda: collect_network_stats(self._net_counter, proc),
                NetworkStats(),
            ),
            system=self._safe_call("system", lambda: collect_system_stats(proc), SystemStats()),
            pressure=self._safe_call("pressure", lambda: collect_pressure_stats(proc), PressureStats()),
            taint=self._safe_call("taint", lambda: collect_taint_stats(proc), TaintStats()),
            temperatures=tuple(self._safe_call("temperature", lambda: collect_temperatures(sys_root), [])),
        )
        self._store.publish(snapshot)
        return snapshot

    def diagnostics(self) -> dict[str, Any]:
        with self._failures_lock:
            return {
                "provider_failures": dict(self._provider_failures),
                "last_error": self._last_error,
            }

    def _safe_call(self, key: str, fn: Callable[[], T], default: T) -> T:
        try:
            return fn()
        except (OSError, ValueError, IndexError) as exc:
            # Fuente ausente o con formato inesperado: solo se degrada esta métrica.
            logger.debug("Proveedor '%s' sin datos: %s", key, exc)
            self._record_failure(key, exc)
        except Exception as exc:
            logger.exception("Proveedor '%s' falló durante la recolección", key)
            self._record_failure(key, exc)
        return default

    def _record_failure(self, key: str, exc: BaseException) -> None:
        with self._failures_lock:
            self._provider_failures[key] += 1
            self._last_error = {
                "provider": key,
                "message": str(exc),
                "type": exc.__class__.__name__,
                "timestamp": time.time(),
            }
