"""Data provider package."""

from .counters import CPUCounter, CPUTicks, NetworkCounter, cpu_percent
from .cpu import collect_cpu_stats
from .disk import collect_disk_stats, collect_mounts
from .gpu import collect_gpu_stats
from .memory import collect_memory_stats
from .network import collect_interfaces, collect_network_stats
from .pressure import collect_pressure_stats
from .sensors import collect_temperatures
from .system import collect_system_stats
from .taint import collect_taint_stats, decode_taint

__all__ = [
    "CPUCounter",
    "CPUTicks",
    "NetworkCounter",
    "collect_cpu_stats",
    "collect_disk_stats",
    "collect_gpu_stats",
    "collect_interfaces",
    "collect_memory_stats",
    "collect_mounts",
    "collect_network_stats",
    "collect_pressure_stats",
    "collect_system_stats",
    "collect_taint_stats",
    "collect_temperatures",
    "cpu_percent",
    "decode_taint",
]
