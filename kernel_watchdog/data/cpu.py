"""CPU tick counters from ``/proc/stat``."""

from __future__ import annotations

from pathlib import Path

import psutil

from .counters import CPUCounter, CPUTicks
from kernel_watchdog.models import CPUStats


def parse_proc_stat(text: str) -> tuple[CPUTicks | None, dict[int, CPUTicks]]:
    """Return the aggregate row and the ``cpuN`` rows keyed by core index."""

    aggregate: CPUTicks | None = None
    cores: dict[int, CPUTicks] = {}
    for line in text.splitlines():
        if not line.startswith("cpu"):
            continue
        name, *fields = line.split()
        try:
            ticks = CPUTicks.from_fields(fields)
        except ValueError:
            continue
        if name == "cpu":
            aggregate = ticks
        elif name[3:].isdigit():
            cores[int(name[3:])] = ticks
    return aggregate, cores


def logical_cpu_count() -> int:
    return psutil.cpu_count(logical=True) or 1


def collect_cpu_stats(counter: CPUCounter, proc_root: Path = Path("/proc")) -> CPUStats:
    text = (proc_root / "stat").read_text(encoding="utf-8")
    aggregate, cores = parse_proc_stat(text)
    usage, per_core = counter.update(aggregate, cores)
    return CPUStats(
        usage_percent=usage,
        per_core=per_core,
        logical_cores=logical_cpu_count(),
    )
