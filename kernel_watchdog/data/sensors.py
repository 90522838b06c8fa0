"""Hardware monitor temperatures from ``/sys/class/hwmon``."""

from __future__ import annotations

from pathlib import Path

from kernel_watchdog.models import TemperatureReading

MAX_CHIPS = 20
MAX_CHANNELS = 20


def _read_line(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return None


def collect_temperatures(sys_root: Path = Path("/sys")) -> list[TemperatureReading]:
    """Bounded scan of ``hwmonN/tempM_input``.

    Chips are probed by index; within a chip the scan stops at the first
    missing channel. Labels are ``<chip>/<label>`` or ``<chip>/t<M>``.
    """

    readings: list[TemperatureReading] = []
    hwmon = sys_root / "class" / "hwmon"
    for chip_index in range(MAX_CHIPS):
        base = hwmon / f"hwmon{chip_index}"
        if not base.is_dir():
            continue
        chip_name = _read_line(base / "name") or f"hwmon{chip_index}"
        for channel in range(1, MAX_CHANNELS + 1):
            raw = _read_line(base / f"temp{channel}_input")
            if raw is None:
                break
            try:
                millidegrees = int(raw)
            except ValueError:
                continue
            label = _read_line(base / f"temp{channel}_label")
            readings.append(
                TemperatureReading(
                    label=f"{chip_name}/{label}" if label else f"{chip_name}/t{channel}",
                    celsius=millidegrees / 1000.0,
                )
            )
    return readings
