"""GPU data provider with multiple backend support."""

from __future__ import annotations

import logging
from pathlib import Path

from kernel_watchdog.models import GPUStats

from .commands import CommandRunner, run_command

try:
    import pynvml  # type: ignore[import]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pynvml = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

NVIDIA_SMI_QUERY = (
    "nvidia-smi",
    "--query-gpu=utilization.gpu,utilization.memory,temperature.gpu,name",
    "--format=csv,noheader,nounits",
)


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:  # "[Not Supported]", "[N/A]"
        return 0.0


def parse_nvidia_smi(output: str) -> GPUStats | None:
    """Parse the first GPU row of the CSV query; ``None`` when unusable."""

    for line in output.strip().splitlines():
        if not line.strip() or "Failed" in line or "not found" in line:
            continue
        parts = [part.strip() for part in line.split(",", 3)]
        if len(parts) < 3:
            return None
        try:
            utilization = float(parts[0])
        except ValueError:
            return None
        return GPUStats(
            present=True,
            name=parts[3] if len(parts) > 3 else "NVIDIA GPU",
            utilization_percent=utilization,
            memory_percent=_to_float(parts[1]),
            temperature_celsius=_to_float(parts[2]),
        )
    return None


def _collect_nvidia_smi(runner: CommandRunner) -> GPUStats | None:
    return parse_nvidia_smi(runner(NVIDIA_SMI_QUERY))


def _collect_pynvml() -> GPUStats | None:
    """Collect the first device through NVML bindings."""

    if pynvml is None:
        return None
    try:
        pynvml.nvmlInit()
    except pynvml.NVMLError:  # no driver/library on this host
        return None
    try:
        if pynvml.nvmlDeviceGetCount() < 1:
            return None
        handle = pynvml.nvmlDeviceGetHandleByIndex(0)
        name = pynvml.nvmlDeviceGetName(handle)
        if isinstance(name, bytes):
            name = name.decode("utf-8", errors="replace")
        util = pynvml.nvmlDeviceGetUtilizationRates(handle)
        temperature = pynvml.nvmlDeviceGetTemperature(handle, pynvml.NVML_TEMPERATURE_GPU)
        return GPUStats(
            present=True,
            name=str(name),
            utilization_percent=float(util.gpu),
            memory_percent=float(util.memory),
            temperature_celsius=float(temperature),
        )
    except pynvml.NVMLError as exc:
        logger.debug("NVML no devolvió datos: %s", exc)
        return None
    finally:
        try:
            pynvml.nvmlShutdown()
        except pynvml.NVMLError:
            pass


def _collect_sysfs(sys_root: Path) -> GPUStats | None:
    for busy_file in sorted((sys_root / "class" / "drm").glob("card*/device/gpu_busy_percent")):
        try:
            value = int(busy_file.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            continue
        return GPUStats(present=True, name="AMD GPU", utilization_percent=float(value))
    return None


def collect_gpu_stats(
    sys_root: Path = Path("/sys"),
    runner: CommandRunner = run_command,
    use_nvml: bool = True,
) -> GPUStats:
    """Vendor utility first, then NVML, then the driver busy file."""

    stats = _collect_nvidia_smi(runner)
    if stats is None and use_nvml:
        stats = _collect_pynvml()
    if stats is None:
        stats = _collect_sysfs(sys_root)
    return stats or GPUStats()
