"""File and console logging for the watchdog processes."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

_LOGGER_NAME = "kernel_watchdog"
_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 50 * 1024 * 1024


def configure_logging(
    log_file: Path | None = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Attach handlers to the package logger once; later calls are no-ops."""

    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)
    file_error: OSError | None = None

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                filename=str(log_file),
                maxBytes=MAX_LOG_BYTES,
                backupCount=1,
                encoding="utf-8",
            )
        except OSError as exc:
            # Sin permisos sobre /var/log: seguimos solo con consola.
            file_error = exc
            console = True
        else:
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(stream_handler)

    if file_error is not None:
        logger.warning("No se pudo abrir %s: %s", log_file, file_error)
    return logger