"""Models exported by the kernel watchdog."""

from .log_entry import LogEntry, LogSource, Severity, Subsystem
from .snapshot import (
    CPUStats,
    DiskStats,
    GPUStats,
    MemoryStats,
    MetricsSnapshot,
    MountInfo,
    NetworkInterfaceInfo,
    NetworkStats,
    PressureStats,
    SystemStats,
    TaintStats,
    TemperatureReading,
)

__all__ = [
    "CPUStats",
    "DiskStats",
    "GPUStats",
    "LogEntry",
    "LogSource",
    "MemoryStats",
    "MetricsSnapshot",
    "MountInfo",
    "NetworkInterfaceInfo",
    "NetworkStats",
    "PressureStats",
    "Severity",
    "Subsystem",
    "SystemStats",
    "TaintStats",
    "TemperatureReading",
]
