"""Classified kernel log lines kept in the alert ledger."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum


class Severity(IntEnum):
    DEBUG = 0
    INFO = 1
    NOTICE = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5
    EMERGENCY = 6

    @property
    def tag(self) -> str:
        return _SEVERITY_TAGS[self]

    @property
    def log_level(self) -> int:
        return _LOG_LEVELS[self]


_SEVERITY_TAGS = {
    Severity.DEBUG: "DBG",
    Severity.INFO: "INF",
    Severity.NOTICE: "NOT",
    Severity.WARNING: "WRN",
    Severity.ERROR: "ERR",
    Severity.CRITICAL: "CRT",
    Severity.EMERGENCY: "EMG",
}

_LOG_LEVELS = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.NOTICE: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.CRITICAL: logging.CRITICAL,
    Severity.EMERGENCY: logging.CRITICAL,
}


class Subsystem(str, Enum):
    KERNEL = "Kernel"
    MEMORY = "Memory"
    STORAGE = "Storage"
    NETWORK = "Network"
    USB = "USB"
    GPU = "GPU"
    THERMAL = "Thermal"


class LogSource(str, Enum):
    KMSG = "kmsg"
    DMESG = "dmesg"
    JOURNAL = "journal"


@dataclass(frozen=True, slots=True)
class LogEntry:
    source: LogSource
    subsystem: Subsystem
    severity: Severity
    message: str
    raw: str
    timestamp: float = field(default_factory=time.time)

    @property
    def time_text(self) -> str:
        return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self.timestamp))

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "time": self.time_text,
            "source": self.source.value,
            "subsystem": self.subsystem.value,
            "severity": self.severity.tag,
            "level": int(self.severity),
            "message": self.message,
            "raw": self.raw,
        }
