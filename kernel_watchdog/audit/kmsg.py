"""Non-blocking cursor over the kernel ring buffer (``/dev/kmsg``)."""

from __future__ import annotations

import errno
import logging
import os
from enum import Enum
from pathlib import Path

from kernel_watchdog.models import LogEntry, LogSource, Severity

from .classify import classify

logger = logging.getLogger(__name__)

_READ_SIZE = 8192


class ReaderState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    DRAINING = "draining"


def parse_record(line: str) -> tuple[int, str] | None:
    """Split ``<priority,seq,ts,flags>;<message>`` into (syslog level, message).

    Continuation lines (leading whitespace) and lines without framing are
    parse anomalies and yield ``None``.
    """

    if not line or line[0].isspace():
        return None
    header, sep, message = line.partition(";")
    if not sep:
        return None
    try:
        priority = int(header.split(",", 1)[0])
    except ValueError:
        return None
    return priority & 7, message.rstrip("\r\n")


class KmsgReader:
    """Tails records appended after :meth:`start`.

    Re-starting opens a new cursor at the end of the buffer: anything the
    kernel logged while the reader was stopped is not replayed.
    """

    def __init__(self, path: Path = Path("/dev/kmsg"), min_severity: Severity = Severity.WARNING) -> None:
        self._path = path
        self._min_severity = min_severity
        self._fd: int | None = None
        self._state = ReaderState.CLOSED
        self._pending = ""

    @property
    def state(self) -> ReaderState:
        return self._state

    def start(self) -> bool:
        if self._fd is not None:
            return True
        try:
            fd = os.open(self._path, os.O_RDONLY | os.O_NONBLOCK)
        except OSError as exc:
            logger.warning("No se pudo abrir %s: %s", self._path, exc)
            return False
        try:
            os.lseek(fd, 0, os.SEEK_END)
        except OSError as exc:
            os.close(fd)
            logger.warning("No se pudo posicionar %s al final: %s", self._path, exc)
            return False
        self._fd = fd
        self._pending = ""
        self._state = ReaderState.OPEN
        return True

    def stop(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None
        self._pending = ""
        self._state = ReaderState.CLOSED

    def drain(self) -> list[LogEntry]:
        """Read every available record and return those at or above Warning."""

        if self._fd is None:
            return []
        self._state = ReaderState.DRAINING
        entries: list[LogEntry] = []
        try:
            while True:
                try:
                    chunk = os.read(self._fd, _READ_SIZE)
                except BlockingIOError:
                    break
                except OSError as exc:
                    if exc.errno == errno.EPIPE:
                        # El kernel sobrescribió registros antes de leerlos.
                        continue
                    logger.warning("Lectura de %s falló: %s", self._path, exc)
                    break
                if not chunk:
                    break
                entries.extend(self._consume(chunk.decode("utf-8", errors="replace")))
        finally:
            if self._fd is not None:
                self._state = ReaderState.OPEN
        return entries

    def _consume(self, text: str) -> list[LogEntry]:
        data = self._pending + text
        lines = data.split("\n")
        self._pending = lines.pop()  # incomplete tail, if any
        entries: list[LogEntry] = []
        for line in lines:
            entry = self._to_entry(line)
            if entry is not None:
                entries.append(entry)
        return entries

    def _to_entry(self, line: str) -> LogEntry | None:
        record = parse_record(line)
        if record is None:
            return None
        level, message = record
        result = classify(message, level)
        if result is None:
            return None
        subsystem, severity = result
        if severity < self._min_severity:
            return None
        return LogEntry(
            source=LogSource.KMSG,
            subsystem=subsystem,
            severity=severity,
            message=message,
            raw=message,
        )

    def __enter__(self) -> "KmsgReader":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
