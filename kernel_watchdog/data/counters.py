"""Turn monotonically increasing kernel counters into rates."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Sequence


@dataclass(frozen=True, slots=True)
class CPUTicks:
    """One row of ``/proc/stat``: the eight tick categories."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0

    @classmethod
    def from_fields(cls, fields: Sequence[str]) -> "CPUTicks":
        values = [int(value) for value in fields[:8]]
        values.extend([0] * (8 - len(values)))
        return cls(*values)

    @property
    def total(self) -> int:
        return (
            self.user + self.nice + self.system + self.idle
            + self.iowait + self.irq + self.softirq + self.steal
        )

    @property
    def active(self) -> int:
        return self.total - self.idle - self.iowait


def cpu_percent(previous: CPUTicks | None, current: CPUTicks) -> float:
    """Busy percentage between two readings; 0 without a previous one."""

    if previous is None:
        return 0.0
    delta_total = current.total - previous.total
    if delta_total <= 0:
        return 0.0
    delta_active = current.active - previous.active
    return max(0.0, min(100.0, 100.0 * delta_active / delta_total))


class CPUCounter:
    """Keeps the previous aggregate and per-core readings between ticks."""

    def __init__(self) -> None:
        self._previous: CPUTicks | None = None
        self._previous_cores: dict[int, CPUTicks] = {}

    def update(self, aggregate: CPUTicks | None, cores: dict[int, CPUTicks]) -> tuple[float, tuple[float, ...]]:
        usage = 0.0
        if aggregate is not None:
            usage = cpu_percent(self._previous, aggregate)
            self._previous = aggregate
        per_core = tuple(
            cpu_percent(self._previous_cores.get(index), ticks)
            for index, ticks in sorted(cores.items())
        )
        self._previous_cores = dict(cores)
        return usage, per_core


class NetworkCounter:
    """Rate of the summed rx/tx byte counters, in KB/s."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._previous: tuple[int, int, float] | None = None
        self._rates: tuple[float, float] = (0.0, 0.0)

    @property
    def rates(self) -> tuple[float, float]:
        return self._rates

    def update(self, rx_bytes: int, tx_bytes: int) -> tuple[float, float]:
        now = self._clock()
        previous = self._previous
        self._previous = (rx_bytes, tx_bytes, now)
        if previous is None:
            self._rates = (0.0, 0.0)
            return self._rates
        prev_rx, prev_tx, prev_time = previous
        elapsed = now - prev_time
        if elapsed <= 0:
            # Clock anomaly: keep the last good rate.
            return self._rates
        self._rates = (
            _kb_rate(rx_bytes - prev_rx, elapsed),
            _kb_rate(tx_bytes - prev_tx, elapsed),
        )
        return self._rates


def _kb_rate(delta_bytes: int, elapsed: float) -> float:
    if delta_bytes < 0:  # counter reset or interface removed
        return 0.0
    return delta_bytes / elapsed / 1024.0
