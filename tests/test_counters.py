import pytest

from kernel_watchdog.data.counters import CPUCounter, CPUTicks, NetworkCounter, cpu_percent


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_cpu_percent_without_previous_is_zero():
    assert cpu_percent(None, CPUTicks(user=10, idle=90)) == 0.0


def test_cpu_percent_identical_ticks_is_zero():
    ticks = CPUTicks(user=100, system=50, idle=800, iowait=50)
    assert cpu_percent(ticks, ticks) == 0.0


def test_cpu_percent_excludes_idle_and_iowait():
    previous = CPUTicks(user=100, idle=800, iowait=100)
    current = CPUTicks(user=150, idle=830, iowait=120)
    # active +50 out of total +100
    assert cpu_percent(previous, current) == pytest.approx(50.0)


def test_cpu_ticks_pad_short_rows():
    ticks = CPUTicks.from_fields(["1", "2", "3", "4"])
    assert ticks.total == 10
    assert ticks.steal == 0


def test_per_core_rates_are_independent():
    counter = CPUCounter()
    counter.update(CPUTicks(idle=100), {0: CPUTicks(idle=50), 1: CPUTicks(idle=50)})
    usage, per_core = counter.update(
        CPUTicks(user=50, idle=150),
        {0: CPUTicks(user=50, idle=50), 1: CPUTicks(idle=100)},
    )
    assert usage == pytest.approx(50.0)
    assert per_core == (pytest.approx(100.0), pytest.approx(0.0))


def test_new_core_starts_at_zero():
    counter = CPUCounter()
    counter.update(None, {0: CPUTicks(idle=10)})
    _, per_core = counter.update(None, {0: CPUTicks(user=10, idle=10), 1: CPUTicks(user=99)})
    assert per_core == (pytest.approx(100.0), 0.0)


def test_network_first_sample_is_zero():
    counter = NetworkCounter(FakeClock())
    assert counter.update(1000, 2000) == (0.0, 0.0)


def test_network_unchanged_counters_give_zero():
    clock = FakeClock()
    counter = NetworkCounter(clock)
    counter.update(5000, 7000)
    clock.now += 1.0
    assert counter.update(5000, 7000) == (0.0, 0.0)


def test_network_rate_in_kb_per_second():
    clock = FakeClock()
    counter = NetworkCounter(clock)
    counter.update(0, 0)
    clock.now += 2.0
    rx, tx = counter.update(4096, 2048)
    assert rx == pytest.approx(2.0)
    assert tx == pytest.approx(1.0)


def test_network_clock_anomaly_holds_previous_rate():
    clock = FakeClock()
    counter = NetworkCounter(clock)
    counter.update(0, 0)
    clock.now += 1.0
    counter.update(1024, 1024)
    assert counter.update(999999, 999999) == (pytest.approx(1.0), pytest.approx(1.0))
    assert counter.rates == (pytest.approx(1.0), pytest.approx(1.0))


def test_network_counter_reset_reads_as_zero():
    clock = FakeClock()
    counter = NetworkCounter(clock)
    counter.update(10_000, 10_000)
    clock.now += 1.0
    assert counter.update(10, 20_240) == (0.0, pytest.approx(10.0))
