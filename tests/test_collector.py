import pytest

from conftest import FakeRunner, write
from kernel_watchdog.core.collector import MetricsCollector
from kernel_watchdog.core.config import SourcePaths
from kernel_watchdog.core.store import SnapshotStore


class StepClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def make_collector(sources, clock=None):
    store = SnapshotStore(history_window=120)
    collector = MetricsCollector(
        store,
        sources=sources,
        runner=FakeRunner(),
        clock=clock or StepClock(),
        use_nvml=False,
    )
    return store, collector


def test_sample_publishes_snapshot(sources):
    store, collector = make_collector(sources)
    snapshot = collector.sample()
    assert store.snapshot() is snapshot
    assert snapshot.memory.percent == pytest.approx(87.5)
    assert snapshot.system.load_1 == pytest.approx(0.52)
    assert snapshot.pressure.memory_some == pytest.approx(2.25)
    assert snapshot.taint.clean
    assert not snapshot.gpu.present
    assert snapshot.cpu.usage_percent == 0.0
    assert len(store.history()["cpu"]) == 1


def test_second_sample_computes_rates(sources, proc_root):
    clock = StepClock()
    _, collector = make_collector(sources, clock)
    collector.sample()
    write(proc_root / "stat", "cpu  150 0 150 750 100 0 0 0\ncpu0 75 0 75 375 50\ncpu1 75 0 75 375 50\n")
    write(
        proc_root / "net" / "dev",
        "  eth0: 3072000 1 0 0 0 0 0 0 1024000 1 0 0 0 0 0 0\n",
    )
    clock.now += 1.0
    snapshot = collector.sample()
    # active +100 out of total +150
    assert snapshot.cpu.usage_percent == pytest.approx(100.0 * 100 / 150)
    assert snapshot.network.rx_kbps == pytest.approx(1000.0)
    assert snapshot.network.tx_kbps == 0.0


def test_unchanged_counters_give_zero_rates(sources):
    clock = StepClock()
    _, collector = make_collector(sources, clock)
    collector.sample()
    clock.now += 1.0
    snapshot = collector.sample()
    assert snapshot.cpu.usage_percent == 0.0
    assert (snapshot.network.rx_kbps, snapshot.network.tx_kbps) == (0.0, 0.0)


def test_missing_sources_degrade_individually(tmp_path):
    proc = tmp_path / "proc"
    write(proc / "meminfo", "MemTotal: 1000 kB\nMemAvailable: 500 kB\n")
    sources = SourcePaths(proc=proc, sys=tmp_path / "sys", kmsg=tmp_path / "kmsg", root=tmp_path)
    _, collector = make_collector(sources)
    snapshot = collector.sample()
    assert snapshot.memory.percent == pytest.approx(50.0)
    assert snapshot.cpu.usage_percent == 0.0
    assert snapshot.cpu.logical_cores >= 1
    assert snapshot.taint.mask == 0
    assert snapshot.temperatures == ()
    failures = collector.diagnostics()["provider_failures"]
    assert failures["cpu"] == 1
    assert failures["network"] == 1
    assert failures["taint"] == 1
    assert "memory" not in failures


def test_unexpected_provider_error_is_contained(sources, monkeypatch):
    import kernel_watchdog.core.collector as collector_module

    def explode(*args, **kwargs):
        raise RuntimeError("driver went away")

    monkeypatch.setattr(collector_module, "collect_gpu_stats", explode)
    _, collector = make_collector(sources)
    snapshot = collector.sample()
    assert not snapshot.gpu.present
    assert collector.diagnostics()["last_error"]["type"] == "RuntimeError"
