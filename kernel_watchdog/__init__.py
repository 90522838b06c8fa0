"""Kernel and hardware health monitor with a classified kernel-event ledger."""

from kernel_watchdog.core.config import APP_NAME, VERSION

__version__ = VERSION

__all__ = ["APP_NAME", "VERSION", "__version__"]
