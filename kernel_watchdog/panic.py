"""Emergency dump of the kernel log to every writable mount candidate."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Iterable

from kernel_watchdog.data.commands import CommandRunner, run_command

logger = logging.getLogger(__name__)

PANIC_FILE = "cyber-watchdog-panic.log"
PANIC_DIRS = tuple(Path(p) for p in ("/", "/boot", "/home", "/tmp", "/root", "/var/log"))


def read_kernel_log(runner: CommandRunner = run_command) -> str:
    return runner(["dmesg", "-T"]) or runner(["dmesg"])


def panic_save(
    directories: Iterable[Path] = PANIC_DIRS,
    runner: CommandRunner = run_command,
) -> int:
    """Append the kernel log to ``cyber-watchdog-panic.log`` in each existing
    directory and return how many copies were written."""

    data = read_kernel_log(runner)
    stamp = time.strftime("%a %b %d %H:%M:%S %Y")
    saved = 0
    for directory in directories:
        if not directory.is_dir():
            continue
        target = directory / PANIC_FILE
        try:
            with target.open("a", encoding="utf-8") as handle:
                handle.write(f"\n=== PANIC {stamp} mount: {directory} ===\n")
                handle.write(data)
                handle.write("\n=== END ===\n")
                handle.flush()
                os.fsync(handle.fileno())
        except OSError as exc:
            logger.warning("No se pudo guardar en %s: %s", target, exc)
            continue
        saved += 1
    logger.info("Volcado de pánico guardado en %d ubicaciones", saved)
    return saved
