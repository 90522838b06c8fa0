"""Disk usage: root filesystem percent and the mount table."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import psutil

from kernel_watchdog.models import DiskStats, MountInfo

logger = logging.getLogger(__name__)

_PSEUDO_FILESYSTEMS = {"devtmpfs", "tmpfs", "squashfs", "efivarfs", "proc", "sysfs", "overlay"}
_GB = 1024 ** 3


def collect_disk_stats(root: Path = Path("/")) -> DiskStats:
    stat = os.statvfs(root)
    total = stat.f_blocks * stat.f_frsize
    available = stat.f_bavail * stat.f_frsize
    if total <= 0:
        return DiskStats()
    return DiskStats(root_percent=100.0 * (1.0 - available / total))


def collect_mounts() -> list[MountInfo]:
    """Real filesystems with their usage, skipping pseudo mounts."""

    mounts: list[MountInfo] = []
    for partition in psutil.disk_partitions(all=False):
        if partition.fstype in _PSEUDO_FILESYSTEMS:
            continue
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError as exc:
            logger.debug("Sin acceso a %s: %s", partition.mountpoint, exc)
            continue
        mounts.append(
            MountInfo(
                mountpoint=partition.mountpoint,
                fstype=partition.fstype,
                percent=float(usage.percent),
                total_gb=usage.total / _GB,
                used_gb=usage.used / _GB,
            )
        )
    return mounts
