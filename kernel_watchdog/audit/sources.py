"""Snapshot-style kernel log queries (``dmesg``, ``journalctl``)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from kernel_watchdog.data.commands import CommandRunner, command_exists, run_command
from kernel_watchdog.models import LogEntry, LogSource

from .classify import classify

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 10


@dataclass(frozen=True)
class CommandLogSource:
    """A command whose stdout is one kernel log line per row."""

    source: LogSource
    args: tuple[str, ...]
    limit: int = 50
    executable: str | None = None  # checked on PATH before running

    def available(self, exists: Callable[[str], bool] = command_exists) -> bool:
        return self.executable is None or exists(self.executable)

    def fetch(self, runner: CommandRunner = run_command) -> list[str]:
        """The most recent ``limit`` non-empty lines; ``[]`` on failure."""

        output = runner(self.args)
        lines = [line.rstrip() for line in output.splitlines() if line.strip()]
        return lines[-self.limit:] if self.limit > 0 else []


def dmesg_source(limit: int = 50) -> CommandLogSource:
    return CommandLogSource(
        source=LogSource.DMESG,
        args=("dmesg", "--level=err,crit,alert,emerg", "-T"),
        limit=limit,
    )


def journal_source(limit: int = 50) -> CommandLogSource:
    return CommandLogSource(
        source=LogSource.JOURNAL,
        args=("journalctl", "-p", "err..emerg", "--no-pager", "-n", str(limit)),
        limit=limit,
        executable="journalctl",
    )


def default_sources(limit: int = 50) -> list[CommandLogSource]:
    return [dmesg_source(limit), journal_source(limit)]


def classify_lines(lines: Sequence[str], source: LogSource) -> list[LogEntry]:
    """Keyword-classify unframed lines; unmatched and too-short lines are dropped."""

    entries: list[LogEntry] = []
    for line in lines:
        if len(line) < MIN_LINE_LENGTH:
            continue
        result = classify(line)
        if result is None:
            continue
        subsystem, severity = result
        entries.append(
            LogEntry(
                source=source,
                subsystem=subsystem,
                severity=severity,
                message=line,
                raw=line,
            )
        )
    return entries
