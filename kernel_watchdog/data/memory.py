"""Memory data collection."""

from __future__ import annotations

from pathlib import Path

from kernel_watchdog.models import MemoryStats

_FIELDS = (
    "MemTotal",
    "MemAvailable",
    "MemFree",
    "Buffers",
    "Cached",
    "SwapTotal",
    "SwapFree",
    "Slab",
)


def parse_meminfo(text: str) -> MemoryStats:
    values: dict[str, int] = {}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        if not sep or key not in _FIELDS:
            continue
        parts = rest.split()
        if not parts:
            continue
        try:
            values[key] = int(parts[0])  # kB
        except ValueError:
            continue

    total = values.get("MemTotal", 0)
    available = values.get("MemAvailable", 0)
    if not available:
        available = values.get("MemFree", 0) + values.get("Buffers", 0) + values.get("Cached", 0)
    swap_total = values.get("SwapTotal", 0)
    swap_used = swap_total - values.get("SwapFree", 0)

    return MemoryStats(
        total_mb=total // 1024,
        used_mb=(total - available) // 1024,
        available_mb=available // 1024,
        cache_mb=values.get("Cached", 0) // 1024,
        slab_mb=values.get("Slab", 0) // 1024,
        percent=100.0 * (1.0 - available / total) if total > 0 else 0.0,
        swap_total_mb=swap_total // 1024,
        swap_used_mb=swap_used // 1024,
        swap_percent=100.0 * swap_used / swap_total if swap_total > 0 else 0.0,
    )


def collect_memory_stats(proc_root: Path = Path("/proc")) -> MemoryStats:
    return parse_meminfo((proc_root / "meminfo").read_text(encoding="utf-8"))
