from __future__ import annotations

from pathlib import Path

import pytest

from kernel_watchdog.core.config import SourcePaths
from kernel_watchdog.models import LogEntry, LogSource, Severity, Subsystem

MEMINFO = """MemTotal:       16000000 kB
MemFree:         1000000 kB
MemAvailable:    2000000 kB
Buffers:          100000 kB
Cached:           800000 kB
SwapTotal:       4000000 kB
SwapFree:        3000000 kB
Slab:             204800 kB
"""

PROC_STAT = """cpu  100 0 100 700 100 0 0 0 0 0
cpu0 50 0 50 350 50 0 0 0 0 0
cpu1 50 0 50 350 50 0 0 0 0 0
intr 12345
"""

NET_DEV = """Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo: 9999999     100    0    0    0     0          0         0  9999999     100    0    0    0     0       0          0
  eth0: 2048000    1000    0    0    0     0          0         0  1024000     800    0    0    0     0       0          0
"""


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    """A minimal fake ``/proc`` tree."""

    root = tmp_path / "proc"
    write(root / "stat", PROC_STAT)
    write(root / "meminfo", MEMINFO)
    write(root / "net" / "dev", NET_DEV)
    write(root / "loadavg", "0.52 0.40 0.30 1/234 5678\n")
    write(root / "uptime", "7200.00 14000.00\n")
    write(root / "sys" / "kernel" / "tainted", "0\n")
    write(root / "pressure" / "cpu", "some avg10=1.50 avg60=1.00 avg300=0.50 total=12345\n")
    write(
        root / "pressure" / "memory",
        "some avg10=2.25 avg60=0.00 avg300=0.00 total=0\nfull avg10=0.75 avg60=0.00 avg300=0.00 total=0\n",
    )
    write(root / "pressure" / "io", "some avg10=3.00 avg60=0.00 avg300=0.00 total=0\n")
    for pid in ("1", "42", "1337"):
        (root / pid).mkdir()
    return root


@pytest.fixture
def sys_root(tmp_path: Path) -> Path:
    root = tmp_path / "sys"
    root.mkdir()
    return root


@pytest.fixture
def sources(proc_root: Path, sys_root: Path, tmp_path: Path) -> SourcePaths:
    return SourcePaths(proc=proc_root, sys=sys_root, kmsg=tmp_path / "kmsg", root=tmp_path)


def make_entry(raw: str, severity: Severity = Severity.ERROR) -> LogEntry:
    return LogEntry(
        source=LogSource.DMESG,
        subsystem=Subsystem.KERNEL,
        severity=severity,
        message=raw,
        raw=raw,
    )


class FakeRunner:
    """Command runner returning canned stdout keyed by the program name."""

    def __init__(self, outputs: dict[str, str] | None = None) -> None:
        self.outputs = outputs or {}
        self.calls: list[tuple[str, ...]] = []

    def __call__(self, args) -> str:
        args = tuple(args)
        self.calls.append(args)
        return self.outputs.get(args[0], "")
