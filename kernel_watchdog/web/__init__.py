"""HTTP query layer over the shared snapshot store."""

from .server import WatchdogServer, create_app

__all__ = ["WatchdogServer", "create_app"]
