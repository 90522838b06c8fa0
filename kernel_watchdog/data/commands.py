"""Thin wrapper around external query utilities."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

CommandRunner = Callable[[Sequence[str]], str]


def run_command(args: Sequence[str], timeout: float = 5.0) -> str:
    """Run ``args`` and return stdout, or ``""`` when the command is unusable."""

    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("Comando %s no disponible: %s", args[0], exc)
        return ""
    if result.returncode != 0:
        logger.debug("Comando %s terminó con código %s", args[0], result.returncode)
        return ""
    return result.stdout


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None
