"""One-shot plain-text health report."""

from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from kernel_watchdog.core.config import APP_NAME, VERSION
from kernel_watchdog.data import collect_interfaces, collect_mounts
from kernel_watchdog.models import LogEntry, MetricsSnapshot, MountInfo, NetworkInterfaceInfo
from kernel_watchdog.runtime import Watchdog

logger = logging.getLogger(__name__)

REPORT_ALERTS = 20


def format_report(
    snapshot: MetricsSnapshot,
    alerts: Sequence[LogEntry],
    interfaces: Sequence[NetworkInterfaceInfo] = (),
    mounts: Sequence[MountInfo] = (),
    generated_at: float | None = None,
) -> str:
    system = snapshot.system
    memory = snapshot.memory
    stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(generated_at or time.time()))
    lines = [
        f"=== {APP_NAME} v{VERSION} report ({stamp}) ===",
        f"Host:    {system.hostname}",
        f"Kernel:  {system.kernel_release}",
        f"Uptime:  {system.uptime_hours:.1f} h",
        f"CPU:     {snapshot.cpu.usage_percent:.1f}% ({snapshot.cpu.logical_cores} cores)",
        f"RAM:     {memory.percent:.1f}% ({memory.used_mb}/{memory.total_mb} MB)",
        f"Swap:    {memory.swap_percent:.1f}% ({memory.swap_used_mb}/{memory.swap_total_mb} MB)",
        f"Disk /:  {snapshot.disk.root_percent:.1f}%",
        f"Load:    {system.load_1:.2f} {system.load_5:.2f} {system.load_15:.2f}",
        f"Procs:   {system.process_count}",
        f"Net:     rx {snapshot.network.rx_kbps:.1f} KB/s tx {snapshot.network.tx_kbps:.1f} KB/s",
    ]
    gpu = snapshot.gpu
    if gpu.present:
        lines.append(
            f"GPU:     {gpu.name} {gpu.utilization_percent:.0f}% "
            f"mem {gpu.memory_percent:.0f}% {gpu.temperature_celsius:.0f}°C"
        )
    else:
        lines.append("GPU:     none")
    lines.append(f"Taint:   0x{snapshot.taint.mask:x} ({snapshot.taint.describe()})")
    pressure = snapshot.pressure
    lines.append(
        f"PSI:     cpu {pressure.cpu_some:.2f} mem {pressure.memory_some:.2f}/{pressure.memory_full:.2f} "
        f"io {pressure.io_some:.2f}"
    )

    if snapshot.temperatures:
        lines.append("")
        lines.append("Temperatures:")
        lines.extend(f"  {reading.label}: {reading.celsius:.1f}°C" for reading in snapshot.temperatures)

    if interfaces:
        lines.append("")
        lines.append("Interfaces:")
        for iface in interfaces:
            lines.append(f"  {iface.name}: {iface.state} {iface.address or '-'} {iface.mac or '-'}")

    if mounts:
        lines.append("")
        lines.append("Mounts:")
        for mount in mounts:
            lines.append(
                f"  {mount.mountpoint} ({mount.fstype}) {mount.percent:.1f}% "
                f"{mount.used_gb:.1f}/{mount.total_gb:.1f} GB"
            )

    lines.append("")
    lines.append(f"Alerts: {len(alerts)}")
    for entry in list(alerts)[:REPORT_ALERTS]:
        lines.append(f"  [{entry.time_text}] {entry.severity.tag} {entry.subsystem.value}: {entry.message}")
    return "\n".join(lines) + "\n"


def generate_report(
    watchdog: Watchdog,
    pause: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Take two samples ``pause`` seconds apart so rates are meaningful,
    run one audit pass and render the result."""

    watchdog.auditor.start()
    try:
        watchdog.collector.sample()
        sleep(pause)
        snapshot = watchdog.collector.sample()
        watchdog.scan_now()
    finally:
        watchdog.auditor.stop()

    try:
        interfaces = collect_interfaces(watchdog.config.sources.sys)
    except OSError as exc:
        logger.debug("Sin interfaces de red: %s", exc)
        interfaces = []
    try:
        mounts = collect_mounts()
    except OSError as exc:
        logger.debug("Sin puntos de montaje: %s", exc)
        mounts = []
    return format_report(snapshot, watchdog.store.alerts(), interfaces, mounts)
