"""Lock-guarded state shared between the worker threads and the readers."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Iterable

from kernel_watchdog.models import LogEntry, MetricsSnapshot

HISTORY_SERIES = ("cpu", "ram", "gpu", "rx", "tx", "load1")


class RollingHistory:
    """Six sliding windows of scalar projections, oldest first."""

    def __init__(self, window: int = 120) -> None:
        if window < 1:
            raise ValueError("window must be positive")
        self.window = window
        self.series: dict[str, Deque[float]] = {
            name: deque(maxlen=window) for name in HISTORY_SERIES
        }

    def append(self, snapshot: MetricsSnapshot) -> None:
        self.series["cpu"].append(snapshot.cpu.usage_percent)
        self.series["ram"].append(snapshot.memory.percent)
        self.series["gpu"].append(snapshot.gpu.utilization_percent)
        self.series["rx"].append(snapshot.network.rx_kbps)
        self.series["tx"].append(snapshot.network.tx_kbps)
        self.series["load1"].append(snapshot.system.load_1)

    def to_dict(self) -> dict[str, list[float]]:
        return {name: list(values) for name, values in self.series.items()}

    def __len__(self) -> int:
        return len(self.series["cpu"])


class AlertLedger:
    """Ordered, deduplicated, capacity-bounded list of log entries.

    Not thread-safe on its own; the :class:`SnapshotStore` lock guards it.
    Duplicate detection uses the raw line. A set of the raw lines currently
    held mirrors the deque so the check does not rescan the ledger.
    """

    def __init__(self, capacity: int = 500) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: Deque[LogEntry] = deque()
        self._raw_lines: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, raw: object) -> bool:
        return raw in self._raw_lines

    def admit(self, entry: LogEntry) -> bool:
        if entry.raw in self._raw_lines:
            return False
        self._entries.append(entry)
        self._raw_lines.add(entry.raw)
        while len(self._entries) > self.capacity:
            evicted = self._entries.popleft()
            self._raw_lines.discard(evicted.raw)
        return True

    def entries(self) -> list[LogEntry]:
        return list(self._entries)


class SnapshotStore:
    """Holds the current snapshot, the histories and the alert ledger.

    The lock is only held to swap, append or copy out; callers do their I/O
    before entering.
    """

    def __init__(self, history_window: int = 120, ledger_capacity: int = 500) -> None:
        self._lock = threading.Lock()
        self._snapshot = MetricsSnapshot()
        self._history = RollingHistory(history_window)
        self._ledger = AlertLedger(ledger_capacity)
        self._alert_count = 0

    def publish(self, snapshot: MetricsSnapshot) -> None:
        with self._lock:
            self._history.append(snapshot)
            self._snapshot = snapshot

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return self._snapshot

    def history(self) -> dict[str, list[float]]:
        with self._lock:
            return self._history.to_dict()

    def admit(self, candidates: Iterable[LogEntry]) -> list[LogEntry]:
        """Append non-duplicate entries, trim to capacity, return the admitted."""

        admitted: list[LogEntry] = []
        with self._lock:
            for entry in candidates:
                if self._ledger.admit(entry):
                    admitted.append(entry)
            self._alert_count = len(self._ledger)
        return admitted

    def alerts(self) -> list[LogEntry]:
        with self._lock:
            return self._ledger.entries()

    def alert_count(self) -> int:
        return self._alert_count

    def recent_raw_lines(self, limit: int) -> list[str]:
        """Raw lines of the newest ``limit`` ledger entries, oldest first."""

        if limit <= 0:
            return []
        with self._lock:
            entries = self._ledger.entries()
        return [entry.raw for entry in entries[-limit:]]
