"""Boot service installation for systemd, OpenRC and SysVinit."""

from __future__ import annotations

import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Callable

from kernel_watchdog.core.config import CONFIG, DEFAULT_CONFIG_TEXT, RuntimePaths
from kernel_watchdog.data.commands import CommandRunner, command_exists, run_command

logger = logging.getLogger(__name__)

SERVICE_NAME = "cyber-watchdog"


class InitSystem(str, Enum):
    SYSTEMD = "systemd"
    OPENRC = "OpenRC"
    SYSV = "SysVinit"


SYSTEMD_UNIT = """[Unit]
Description=Cyber-Watchdog Kernel Monitor
DefaultDependencies=no
After=sysinit.target
Before=basic.target
Wants=sysinit.target

[Service]
Type=simple
ExecStart={binary} --daemon
Restart=always
RestartSec=3
StandardOutput=journal
SyslogIdentifier={name}
ProtectSystem=strict
ReadWritePaths={log_dir} /var/run
ReadOnlyPaths=/proc /sys /dev/kmsg
OOMScoreAdjust=-900

[Install]
WantedBy=sysinit.target
WantedBy=multi-user.target
"""

OPENRC_SCRIPT = """#!/sbin/openrc-run
name="{name}"
command="{binary}"
command_args="--daemon"
command_background=true
pidfile="/run/${{RC_SVCNAME}}.pid"

depend() {{
  need localmount
  before *
}}
"""

SYSV_SCRIPT = """#!/bin/sh
### BEGIN INIT INFO
# Provides:          {name}
# Required-Start:
# Required-Stop:
# Default-Start:     S 1 2 3 4 5
# Default-Stop:      0 6
# X-Start-Before:    $all mountall
# Short-Description: Kernel Monitor
### END INIT INFO
DAEMON="{binary}"
PIDFILE="{pid_file}"
case "$1" in
  start)
    [ -f "$PIDFILE" ] && kill -0 $(cat "$PIDFILE") 2>/dev/null && exit 0
    $DAEMON --daemon &
    echo $! > "$PIDFILE"
    ;;
  stop)
    [ -f "$PIDFILE" ] && kill $(cat "$PIDFILE") 2>/dev/null
    rm -f "$PIDFILE"
    ;;
  restart) $0 stop; sleep 1; $0 start ;;
  status)
    [ -f "$PIDFILE" ] && kill -0 $(cat "$PIDFILE") 2>/dev/null && echo Running || echo Stopped
    ;;
  *) echo "Usage: $0 {{start|stop|restart|status}}" ;;
esac
"""

LAUNCHER = """#!/bin/sh
exec {python} -m kernel_watchdog "$@"
"""


class InitManager:
    """Detects the init system and manages the boot service.

    Every filesystem location and the command runner are injectable so the
    manager can be exercised against a scratch directory.
    """

    def __init__(
        self,
        paths: RuntimePaths = CONFIG.paths,
        runner: CommandRunner = run_command,
        exists: Callable[[str], bool] = command_exists,
        proc_root: Path = Path("/proc"),
        run_root: Path = Path("/run"),
        systemd_dir: Path = Path("/etc/systemd/system"),
        init_dir: Path = Path("/etc/init.d"),
    ) -> None:
        self.paths = paths
        self._runner = runner
        self._exists = exists
        self._proc_root = proc_root
        self._run_root = run_root
        self.unit_file = systemd_dir / f"{SERVICE_NAME}.service"
        self.init_script = init_dir / SERVICE_NAME
        self.messages: list[str] = []

    def detect(self) -> InitSystem:
        try:
            pid1 = (self._proc_root / "1" / "comm").read_text(encoding="utf-8").strip()
        except OSError:
            pid1 = ""
        if pid1 == "systemd" or (self._run_root / "systemd" / "system").exists():
            return InitSystem.SYSTEMD
        if self._exists("rc-update"):
            return InitSystem.OPENRC
        return InitSystem.SYSV

    def install(self) -> bool:
        self.messages = []
        init = self.detect()
        try:
            self._write_launcher()
            self.paths.log_dir.mkdir(parents=True, exist_ok=True)
            self._write_config()
            if init is InitSystem.SYSTEMD:
                self._install_systemd()
            elif init is InitSystem.OPENRC:
                self._install_openrc()
            else:
                self._install_sysv()
        except OSError as exc:
            logger.error("Instalación fallida (%s): %s", init.value, exc)
            self._note(f"FAIL: {exc}")
            return False
        self._note("Done!")
        return True

    def uninstall(self) -> bool:
        self.messages = []
        for command in (
            ["systemctl", "stop", SERVICE_NAME],
            ["systemctl", "disable", SERVICE_NAME],
            [str(self.init_script), "stop"],
            ["update-rc.d", SERVICE_NAME, "remove"],
            ["rc-service", SERVICE_NAME, "stop"],
            ["rc-update", "del", SERVICE_NAME],
        ):
            self._runner(command)
        for path in (self.unit_file, self.init_script):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
        self._note("Removed.")
        return True

    def installed(self) -> bool:
        if self.detect() is InitSystem.SYSTEMD:
            return self._runner(["systemctl", "is-enabled", SERVICE_NAME]).strip() == "enabled"
        return self.init_script.exists()

    def status(self) -> str:
        if self.detect() is InitSystem.SYSTEMD:
            return self._runner(["systemctl", "is-active", SERVICE_NAME]).strip() or "unknown"
        try:
            pid = self.paths.pid_file.read_text(encoding="utf-8").strip()
        except OSError:
            pid = ""
        if pid.isdigit() and (self._proc_root / pid).exists():
            return f"running({pid})"
        return "stopped"

    def _note(self, message: str) -> None:
        self.messages.append(f"[INIT] {message}")
        logger.info(message)

    def _write_launcher(self) -> None:
        binary = self.paths.binary
        binary.parent.mkdir(parents=True, exist_ok=True)
        binary.write_text(LAUNCHER.format(python=sys.executable), encoding="utf-8")
        os.chmod(binary, 0o755)
        self._note(f"Binary -> {binary}")

    def _write_config(self) -> None:
        config_file = self.paths.config_file
        if config_file.exists():
            self._note("Config exists.")
            return
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(DEFAULT_CONFIG_TEXT, encoding="utf-8")
        os.chmod(config_file, 0o644)
        self._note(f"Config -> {config_file}")

    def _render(self, template: str) -> str:
        return template.format(
            name=SERVICE_NAME,
            binary=self.paths.binary,
            log_dir=self.paths.log_dir,
            pid_file=self.paths.pid_file,
        )

    def _install_systemd(self) -> None:
        self.unit_file.parent.mkdir(parents=True, exist_ok=True)
        self.unit_file.write_text(self._render(SYSTEMD_UNIT), encoding="utf-8")
        self._runner(["systemctl", "daemon-reload"])
        self._runner(["systemctl", "enable", SERVICE_NAME])
        self._runner(["systemctl", "start", SERVICE_NAME])
        self._note("systemd: After=sysinit Before=basic")

    def _write_init_script(self, template: str) -> None:
        self.init_script.parent.mkdir(parents=True, exist_ok=True)
        self.init_script.write_text(self._render(template), encoding="utf-8")
        os.chmod(self.init_script, 0o755)

    def _install_openrc(self) -> None:
        self._write_init_script(OPENRC_SCRIPT)
        # sysinit puede no existir en todos los perfiles; se usa boot como respaldo
        if not self._runner(["rc-update", "add", SERVICE_NAME, "sysinit"]):
            self._runner(["rc-update", "add", SERVICE_NAME, "boot"])
        self._runner(["rc-service", SERVICE_NAME, "start"])
        self._note("OpenRC: sysinit, before *")

    def _install_sysv(self) -> None:
        self._write_init_script(SYSV_SCRIPT)
        self._runner(["update-rc.d", SERVICE_NAME, "defaults", "01", "99"])
        self._runner([str(self.init_script), "start"])
        self._note("SysVinit: S01 before $all")
