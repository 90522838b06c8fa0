"""Pressure-stall information (``/proc/pressure``)."""

from __future__ import annotations

from pathlib import Path

from kernel_watchdog.models import PressureStats


def parse_psi(text: str) -> tuple[float, float]:
    """Return ``(some avg10, full avg10)``; a missing line reads as 0."""

    some = 0.0
    full = 0.0
    for line in text.splitlines():
        kind, _, rest = line.partition(" ")
        if kind not in ("some", "full"):
            continue
        for item in rest.split():
            key, _, value = item.partition("=")
            if key != "avg10":
                continue
            try:
                parsed = float(value)
            except ValueError:
                break
            if kind == "some":
                some = parsed
            else:
                full = parsed
            break
    return some, full


def _read_psi(path: Path) -> tuple[float, float]:
    try:
        return parse_psi(path.read_text(encoding="utf-8"))
    except OSError:
        return 0.0, 0.0


def collect_pressure_stats(proc_root: Path = Path("/proc")) -> PressureStats:
    base = proc_root / "pressure"
    cpu_some, _ = _read_psi(base / "cpu")
    memory_some, memory_full = _read_psi(base / "memory")
    io_some, _ = _read_psi(base / "io")
    return PressureStats(
        cpu_some=cpu_some,
        memory_some=memory_some,
        memory_full=memory_full,
        io_some=io_some,
    )
