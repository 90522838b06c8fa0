"""Kernel identity, load, uptime and process count."""

from __future__ import annotations

import os
from pathlib import Path

from kernel_watchdog.models import SystemStats


def parse_loadavg(text: str) -> tuple[float, float, float]:
    parts = text.split()
    return float(parts[0]), float(parts[1]), float(parts[2])


def parse_uptime_hours(text: str) -> float:
    return float(text.split()[0]) / 3600.0


def count_processes(proc_root: Path = Path("/proc")) -> int:
    try:
        entries = os.scandir(proc_root)
    except OSError:
        return 0
    with entries:
        return sum(1 for entry in entries if entry.name.isdigit() and entry.is_dir(follow_symlinks=False))


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except OSError:
        return None


def collect_system_stats(proc_root: Path = Path("/proc")) -> SystemStats:
    """Each piece degrades on its own; a missing file never hides the rest."""

    uname = os.uname()
    uptime_hours = 0.0
    load = (0.0, 0.0, 0.0)

    uptime_text = _read(proc_root / "uptime")
    if uptime_text:
        try:
            uptime_hours = parse_uptime_hours(uptime_text)
        except (ValueError, IndexError):
            pass

    load_text = _read(proc_root / "loadavg")
    if load_text:
        try:
            load = parse_loadavg(load_text)
        except (ValueError, IndexError):
            pass

    return SystemStats(
        kernel_release=uname.release,
        hostname=uname.nodename,
        uptime_hours=uptime_hours,
        load_1=load[0],
        load_5=load[1],
        load_15=load[2],
        process_count=count_processes(proc_root),
    )
