"""Dataclasses representing one published metrics tick."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class CPUStats:
    usage_percent: float = 0.0
    per_core: tuple[float, ...] = ()
    logical_cores: int = 0


@dataclass(frozen=True, slots=True)
class MemoryStats:
    """Memory figures in MB, as read from ``/proc/meminfo``."""

    total_mb: int = 0
    used_mb: int = 0
    available_mb: int = 0
    cache_mb: int = 0
    slab_mb: int = 0
    percent: float = 0.0
    swap_total_mb: int = 0
    swap_used_mb: int = 0
    swap_percent: float = 0.0


@dataclass(frozen=True, slots=True)
class GPUStats:
    present: bool = False
    name: str = ""
    utilization_percent: float = 0.0
    memory_percent: float = 0.0
    temperature_celsius: float = 0.0


@dataclass(frozen=True, slots=True)
class DiskStats:
    root_percent: float = 0.0


@dataclass(frozen=True, slots=True)
class NetworkStats:
    rx_kbps: float = 0.0
    tx_kbps: float = 0.0


@dataclass(frozen=True, slots=True)
class SystemStats:
    kernel_release: str = ""
    hostname: str = ""
    uptime_hours: float = 0.0
    load_1: float = 0.0
    load_5: float = 0.0
    load_15: float = 0.0
    process_count: int = 0


@dataclass(frozen=True, slots=True)
class PressureStats:
    """Pressure-stall ``avg10`` percentages."""

    cpu_some: float = 0.0
    memory_some: float = 0.0
    memory_full: float = 0.0
    io_some: float = 0.0


@dataclass(frozen=True, slots=True)
class TaintStats:
    mask: int = 0
    flags: tuple[str, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.flags

    def describe(self) -> str:
        return ", ".join(self.flags) if self.flags else "clean"


@dataclass(frozen=True, slots=True)
class TemperatureReading:
    label: str
    celsius: float


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """One immutable, fully-populated tick. Every field has a neutral default."""

    timestamp: float = 0.0
    cpu: CPUStats = field(default_factory=CPUStats)
    memory: MemoryStats = field(default_factory=MemoryStats)
    gpu: GPUStats = field(default_factory=GPUStats)
    disk: DiskStats = field(default_factory=DiskStats)
    network: NetworkStats = field(default_factory=NetworkStats)
    system: SystemStats = field(default_factory=SystemStats)
    pressure: PressureStats = field(default_factory=PressureStats)
    taint: TaintStats = field(default_factory=TaintStats)
    temperatures: tuple[TemperatureReading, ...] = ()


@dataclass(frozen=True, slots=True)
class NetworkInterfaceInfo:
    name: str
    address: str | None
    mac: str | None
    state: str


@dataclass(frozen=True, slots=True)
class MountInfo:
    mountpoint: str
    fstype: str
    percent: float
    total_gb: float
    used_gb: float
