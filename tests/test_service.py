import pytest

from conftest import FakeRunner, write
from kernel_watchdog.core.config import RuntimePaths
from kernel_watchdog.panic import PANIC_FILE, panic_save
from kernel_watchdog.service import InitManager, InitSystem


@pytest.fixture
def paths(tmp_path):
    return RuntimePaths(
        binary=tmp_path / "sbin" / "cyber-watchdog",
        log_dir=tmp_path / "log",
        log_file=tmp_path / "log" / "watchdog.log",
        pid_file=tmp_path / "run" / "cyber-watchdog.pid",
        config_file=tmp_path / "etc" / "cyber-watchdog.conf",
    )


def make_manager(tmp_path, paths, runner=None, pid1="init", has_rc_update=False, systemd_dir=False):
    proc = tmp_path / "proc"
    write(proc / "1" / "comm", pid1 + "\n")
    run = tmp_path / "run"
    if systemd_dir:
        (run / "systemd" / "system").mkdir(parents=True)
    return InitManager(
        paths=paths,
        runner=runner or FakeRunner(),
        exists=lambda name: has_rc_update and name == "rc-update",
        proc_root=proc,
        run_root=run,
        systemd_dir=tmp_path / "etc" / "systemd" / "system",
        init_dir=tmp_path / "etc" / "init.d",
    )


def test_detect_systemd_by_pid1(tmp_path, paths):
    assert make_manager(tmp_path, paths, pid1="systemd").detect() is InitSystem.SYSTEMD


def test_detect_systemd_by_runtime_dir(tmp_path, paths):
    assert make_manager(tmp_path, paths, systemd_dir=True).detect() is InitSystem.SYSTEMD


def test_detect_openrc(tmp_path, paths):
    assert make_manager(tmp_path, paths, has_rc_update=True).detect() is InitSystem.OPENRC


def test_detect_sysv_fallback(tmp_path, paths):
    assert make_manager(tmp_path, paths).detect() is InitSystem.SYSV


def test_install_systemd_writes_unit_and_config(tmp_path, paths):
    runner = FakeRunner()
    manager = make_manager(tmp_path, paths, runner=runner, pid1="systemd")
    assert manager.install()
    unit = manager.unit_file.read_text()
    assert f"ExecStart={paths.binary} --daemon" in unit
    assert "OOMScoreAdjust=-900" in unit
    assert paths.config_file.read_text().startswith("# Cyber-Watchdog Config")
    assert paths.binary.read_text().startswith("#!/bin/sh")
    assert ("systemctl", "enable", "cyber-watchdog") in runner.calls
    assert manager.messages[-1] == "[INIT] Done!"


def test_install_keeps_existing_config(tmp_path, paths):
    write(paths.config_file, "memory_warn = 70\n")
    manager = make_manager(tmp_path, paths)
    assert manager.install()
    assert paths.config_file.read_text() == "memory_warn = 70\n"
    assert "[INIT] Config exists." in manager.messages


def test_install_sysv_script(tmp_path, paths):
    manager = make_manager(tmp_path, paths)
    assert manager.install()
    script = manager.init_script.read_text()
    assert script.startswith("#!/bin/sh")
    assert f'PIDFILE="{paths.pid_file}"' in script
    assert manager.init_script.stat().st_mode & 0o111
    assert manager.installed()


def test_install_openrc_falls_back_to_boot(tmp_path, paths):
    runner = FakeRunner()
    manager = make_manager(tmp_path, paths, runner=runner, has_rc_update=True)
    assert manager.install()
    assert manager.init_script.read_text().startswith("#!/sbin/openrc-run")
    assert ("rc-update", "add", "cyber-watchdog", "boot") in runner.calls


def test_uninstall_removes_files(tmp_path, paths):
    manager = make_manager(tmp_path, paths)
    manager.install()
    assert manager.uninstall()
    assert not manager.init_script.exists()
    assert not manager.installed()


def test_status_from_pid_file(tmp_path, paths):
    manager = make_manager(tmp_path, paths)
    assert manager.status() == "stopped"
    write(paths.pid_file, "1\n")
    assert manager.status() == "running(1)"


def test_systemd_status_uses_systemctl(tmp_path, paths):
    runner = FakeRunner({"systemctl": "active\n"})
    manager = make_manager(tmp_path, paths, runner=runner, pid1="systemd")
    assert manager.status() == "active"


def test_panic_save_writes_each_existing_dir(tmp_path):
    dirs = [tmp_path / "a", tmp_path / "b", tmp_path / "missing"]
    for directory in dirs[:2]:
        directory.mkdir()
    runner = FakeRunner({"dmesg": "[  1.0] Kernel panic - not syncing\n"})
    assert panic_save(dirs, runner) == 2
    text = (tmp_path / "a" / PANIC_FILE).read_text()
    assert "=== PANIC" in text
    assert "Kernel panic - not syncing" in text
    assert text.rstrip().endswith("=== END ===")
    assert panic_save(dirs, runner) == 2
    assert (tmp_path / "b" / PANIC_FILE).read_text().count("=== END ===") == 2
