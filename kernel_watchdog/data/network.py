"""Network throughput and interface inventory."""

from __future__ import annotations

import socket
from pathlib import Path

import psutil

from kernel_watchdog.models import NetworkInterfaceInfo, NetworkStats

from .counters import NetworkCounter


def parse_net_dev(text: str) -> tuple[int, int]:
    """Sum rx/tx bytes across ``/proc/net/dev`` rows, loopback excluded."""

    total_rx = 0
    total_tx = 0
    for line in text.splitlines():
        name, sep, rest = line.partition(":")
        if not sep:
            continue
        if name.strip() == "lo":
            continue
        fields = rest.split()
        if len(fields) < 9:
            continue
        try:
            total_rx += int(fields[0])
            total_tx += int(fields[8])
        except ValueError:
            continue
    return total_rx, total_tx


def collect_network_stats(counter: NetworkCounter, proc_root: Path = Path("/proc")) -> NetworkStats:
    rx, tx = parse_net_dev((proc_root / "net" / "dev").read_text(encoding="utf-8"))
    rx_kbps, tx_kbps = counter.update(rx, tx)
    return NetworkStats(rx_kbps=rx_kbps, tx_kbps=tx_kbps)


def _read_operstate(sys_root: Path, name: str) -> str:
    try:
        return (sys_root / "class" / "net" / name / "operstate").read_text(encoding="utf-8").strip()
    except OSError:
        return "unknown"


def collect_interfaces(sys_root: Path = Path("/sys")) -> list[NetworkInterfaceInfo]:
    """Interfaces with an IPv4 address, loopback excluded."""

    interfaces: list[NetworkInterfaceInfo] = []
    for name, addresses in psutil.net_if_addrs().items():
        if name == "lo":
            continue
        address = None
        mac = None
        for addr in addresses:
            if addr.family == socket.AF_INET and address is None:
                address = addr.address
            elif addr.family == psutil.AF_LINK:
                mac = addr.address
        if address is None:
            continue
        interfaces.append(
            NetworkInterfaceInfo(
                name=name,
                address=address,
                mac=mac,
                state=_read_operstate(sys_root, name),
            )
        )
    return interfaces
