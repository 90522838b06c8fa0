import errno
import os
from pathlib import Path

from conftest import FakeRunner
import kernel_watchdog.audit.kmsg as kmsg_module
from kernel_watchdog.audit import KernelAuditor, KmsgReader, ReaderState, parse_record
from kernel_watchdog.audit.sources import CommandLogSource, classify_lines, default_sources, dmesg_source
from kernel_watchdog.core.store import SnapshotStore
from kernel_watchdog.data.commands import run_command
from kernel_watchdog.models import LogSource, Severity, Subsystem
from kernel_watchdog.plugins import PluginManager, WatchdogPlugin

DMESG_OUTPUT = """[Mon Oct 19 10:00:00 2026] nvme0n1: I/O error, dev nvme0n1, sector 1234
[Mon Oct 19 10:00:01 2026] usb 1-1: USB disconnect, device number 4
short
[Mon Oct 19 10:00:02 2026] some unrelated message text
"""


def append(path: Path, text: str) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(text)


def test_parse_record_masks_facility():
    # facility 0 (kern), level 3; also facility 1 (user) level 4 -> 12
    assert parse_record("3,1,2,-;disk broke") == (3, "disk broke")
    assert parse_record("12,7,8,-;user warning") == (4, "user warning")


def test_parse_record_anomalies():
    assert parse_record(" SUBSYSTEM=pci") is None
    assert parse_record("no framing here") is None
    assert parse_record("x,1,2,-;bad priority") is None
    assert parse_record("") is None


def test_reader_tails_only_new_records(tmp_path):
    kmsg = tmp_path / "kmsg"
    kmsg.write_text("3,1,1,-;nvme0n1: I/O error before start\n", encoding="utf-8")
    reader = KmsgReader(kmsg)
    assert reader.start()
    assert reader.state is ReaderState.OPEN

    append(
        kmsg,
        "3,2,2,-;nvme0n1: I/O error, dev nvme0n1\n"
        " DEVICE=b259:0\n"
        "6,3,3,-;eth0: link becomes ready\n"
        "4,4,4,-;plain warning text\n",
    )
    entries = reader.drain()
    assert [(e.subsystem, e.severity, e.message) for e in entries] == [
        (Subsystem.STORAGE, Severity.CRITICAL, "nvme0n1: I/O error, dev nvme0n1"),
        (Subsystem.KERNEL, Severity.WARNING, "plain warning text"),
    ]
    assert all(entry.source is LogSource.KMSG for entry in entries)
    assert reader.drain() == []
    reader.stop()
    assert reader.state is ReaderState.CLOSED


def test_reader_keeps_partial_line(tmp_path):
    kmsg = tmp_path / "kmsg"
    kmsg.write_text("", encoding="utf-8")
    with KmsgReader(kmsg) as reader:
        append(kmsg, "2,1,1,-;Out of memory: Killed")
        assert reader.drain() == []
        append(kmsg, " process 99\n")
        entries = reader.drain()
    assert len(entries) == 1
    assert entries[0].message == "Out of memory: Killed process 99"
    assert entries[0].subsystem is Subsystem.MEMORY


def test_reader_missing_device(tmp_path):
    reader = KmsgReader(tmp_path / "absent")
    assert not reader.start()
    assert reader.drain() == []


def test_command_source_tails_limit():
    runner = FakeRunner({"dmesg": "\n".join(f"line number {i}" for i in range(80))})
    lines = dmesg_source(limit=50).fetch(runner)
    assert len(lines) == 50
    assert lines[-1] == "line number 79"


def test_journal_source_requires_executable():
    journal = default_sources()[1]
    assert not journal.available(lambda name: False)
    assert journal.available(lambda name: name == "journalctl")
    assert journal.args[-1] == "50"


def test_classify_lines_drops_short_and_unmatched():
    entries = classify_lines(DMESG_OUTPUT.splitlines(), LogSource.DMESG)
    assert [entry.subsystem for entry in entries] == [Subsystem.STORAGE, Subsystem.USB]


def make_auditor(tmp_path, runner, plugins=None, exists=lambda name: True):
    store = SnapshotStore(ledger_capacity=500)
    auditor = KernelAuditor(
        store,
        reader=KmsgReader(tmp_path / "kmsg"),
        sources=default_sources(50),
        runner=runner,
        exists=exists,
        plugins=plugins,
    )
    return store, auditor


def test_auditor_dedups_across_scans(tmp_path):
    runner = FakeRunner({"dmesg": DMESG_OUTPUT, "journalctl": DMESG_OUTPUT})
    store, auditor = make_auditor(tmp_path, runner)
    first = auditor.scan()
    assert len(first) == 2
    assert auditor.scan() == []
    assert auditor.alerts() == 2
    assert auditor.last_scan is not None


def test_auditor_skips_missing_journal(tmp_path):
    runner = FakeRunner({"dmesg": DMESG_OUTPUT})
    _, auditor = make_auditor(tmp_path, runner, exists=lambda name: False)
    auditor.scan()
    assert [call[0] for call in runner.calls] == ["dmesg"]


def test_auditor_failed_command_is_empty(tmp_path):
    _, auditor = make_auditor(tmp_path, FakeRunner())
    assert auditor.scan() == []


def test_auditor_merges_kmsg(tmp_path):
    kmsg = tmp_path / "kmsg"
    kmsg.write_text("", encoding="utf-8")
    store, auditor = make_auditor(tmp_path, FakeRunner({"dmesg": DMESG_OUTPUT}))
    assert auditor.start()
    append(kmsg, "0,9,9,-;Kernel panic - not syncing: Fatal exception\n")
    admitted = auditor.scan()
    auditor.stop()
    assert admitted[0].source is LogSource.KMSG
    assert admitted[0].severity is Severity.EMERGENCY
    assert store.alert_count() == 3


def test_auditor_notifies_plugins(tmp_path):
    seen = []

    class Recorder(WatchdogPlugin):
        def on_alert(self, entry):
            seen.append(entry.raw)

    class Broken(WatchdogPlugin):
        priority = 1

        def on_alert(self, entry):
            raise RuntimeError("boom")

    plugins = PluginManager([Recorder(), Broken()])
    _, auditor = make_auditor(tmp_path, FakeRunner({"dmesg": DMESG_OUTPUT}), plugins=plugins)
    auditor.scan()
    assert len(seen) == 2


def test_custom_source_limit_zero():
    source = CommandLogSource(LogSource.DMESG, ("dmesg",), limit=0)
    assert source.fetch(FakeRunner({"dmesg": "line one here\n"})) == []


def test_reader_restart_does_not_replay(tmp_path):
    kmsg = tmp_path / "kmsg"
    kmsg.write_text("", encoding="utf-8")
    reader = KmsgReader(kmsg)
    assert reader.start()
    reader.stop()
    append(kmsg, "3,1,1,-;nvme0n1: I/O error while stopped\n")
    assert reader.start()
    assert reader.drain() == []
    append(kmsg, "3,2,2,-;nvme0n1: I/O error after restart\n")
    entries = reader.drain()
    reader.stop()
    assert [entry.message for entry in entries] == ["nvme0n1: I/O error after restart"]


def test_reader_skips_overwritten_records(tmp_path, monkeypatch):
    kmsg = tmp_path / "kmsg"
    kmsg.write_text("", encoding="utf-8")
    reads = [OSError(errno.EPIPE, "Broken pipe"), b"3,5,5,-;nvme0n1: I/O error\n", BlockingIOError()]

    def fake_read(fd, size):
        result = reads.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    with KmsgReader(kmsg) as reader:
        monkeypatch.setattr(kmsg_module.os, "read", fake_read)
        entries = reader.drain()
        monkeypatch.undo()
    assert reads == []
    assert [entry.message for entry in entries] == ["nvme0n1: I/O error"]


def test_undecodable_dmesg_output_keeps_kmsg_records(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "dmesg"
    script.write_bytes(b"#!/bin/sh\nprintf 'sd 0:0:0:0: [sda] I/O error \\377\\376 bad byte\\n'\n")
    script.chmod(0o755)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    assert "\ufffd" in run_command(["dmesg"])

    kmsg = tmp_path / "kmsg"
    kmsg.write_text("", encoding="utf-8")
    store = SnapshotStore()
    auditor = KernelAuditor(store, reader=KmsgReader(kmsg), sources=[dmesg_source()], exists=lambda name: True)
    assert auditor.start()
    append(kmsg, "3,1,100,-;kernel panic - not syncing\n")
    admitted = auditor.scan()
    auditor.stop()
    assert [entry.source for entry in admitted] == [LogSource.KMSG, LogSource.DMESG]
    assert admitted[0].severity is Severity.EMERGENCY
    assert admitted[1].subsystem is Subsystem.STORAGE
