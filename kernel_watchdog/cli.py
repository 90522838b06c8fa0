"""``kernel-watchdog`` command line entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from kernel_watchdog.core.config import APP_NAME, VERSION, WatchdogConfig, load_config
from kernel_watchdog.core.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kernel-watchdog",
        description=f"{APP_NAME} v{VERSION}: kernel and hardware health monitor.",
    )
    parser.add_argument("--config", type=Path, help="Path of the key = value configuration file.")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for --web.")
    parser.add_argument("--port", type=int, default=8080, help="Port for --web (next ones are tried if busy).")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--report", action="store_true", help="Print a one-shot health report.")
    mode.add_argument("--daemon", action="store_true", help="Run headless with threshold warnings.")
    mode.add_argument("--web", action="store_true", help="Serve the JSON API and dashboard.")
    mode.add_argument("--status", action="store_true", help="Show boot service status.")
    mode.add_argument("--install", action="store_true", help="Install the boot service (root).")
    mode.add_argument("--uninstall", action="store_true", help="Remove the boot service (root).")
    mode.add_argument("--panic-save", action="store_true", help="Dump the kernel log to every mount.")
    return parser


def _require_root() -> bool:
    if os.geteuid() != 0:
        print("Se requiere root para esta operación", file=sys.stderr)
        return False
    return True


def _run_report(config: WatchdogConfig) -> int:
    from kernel_watchdog.report import generate_report
    from kernel_watchdog.runtime import Watchdog

    print(generate_report(Watchdog(config)), end="")
    return 0


def _run_web(config: WatchdogConfig, host: str, port: int) -> int:
    from kernel_watchdog.runtime import Watchdog
    from kernel_watchdog.web import create_app

    watchdog = Watchdog(config)
    watchdog.plugins.load_entry_points()
    server = create_app(host=host, port=port, watchdog=watchdog)
    print(f"{APP_NAME} disponible en {server.server_address()}")
    print("Presiona Ctrl+C para detener")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nDeteniendo servidor...")
    return 0


def _run_service(config: WatchdogConfig, args: argparse.Namespace) -> int:
    from kernel_watchdog.service import InitManager

    manager = InitManager(config.paths)
    if args.status:
        print(f"Init:      {manager.detect().value}")
        print(f"Installed: {'yes' if manager.installed() else 'no'}")
        print(f"Status:    {manager.status()}")
        return 0
    if not _require_root():
        return 1
    ok = manager.install() if args.install else manager.uninstall()
    for message in manager.messages:
        print(message)
    return 0 if ok else 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config(args.config)

    if args.daemon:
        configure_logging(config.paths.log_file)
        from kernel_watchdog.daemon import run_daemon

        return run_daemon(config)

    configure_logging(level=logging.WARNING if args.report else logging.INFO)
    if args.report:
        return _run_report(config)
    if args.web:
        return _run_web(config, args.host, args.port)
    if args.status or args.install or args.uninstall:
        return _run_service(config, args)
    if args.panic_save:
        from kernel_watchdog.panic import panic_save

        saved = panic_save()
        print(f"[CW] {saved} saved")
        return 0 if saved else 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
