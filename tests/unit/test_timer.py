import sys

import pytest
from prometheus_client import CollectorRegistry

from routegen.utils import Timer, parse_bool

epsilon = 0.0001


def feq(x: float, y: float) -> bool:
    return abs(x - y) <= epsilon


def fake_clock(*ticks: float):
    it = iter(ticks)
    return lambda: next(it)


def test_Timer():
    t = Timer("test1", clock=fake_clock(100, 110, 120, 140))

    assert t.summary() == "test1: never run"

    with t:
        pass

    assert len(t.durations) == 1
    assert feq(t.durations[0], 10), f"first run must be 10, got {t.durations[0]}"
    assert t.summary() == "test1: 1 run, 10.000/10.000/10.000 sec min/avg/max"

    with t:
        pass

    assert feq(t.durations[1], 20), f"second run must be 20, got {t.durations[1]}"
    assert t.summary() == "test1: 2 runs, 10.000/15.000/20.000 sec min/avg/max"


def test_Timer_records_failed_runs():
    t = Timer("test2", clock=fake_clock(5, 7.5))

    with pytest.raises(RuntimeError):
        with t:
            raise RuntimeError("boom")

    assert len(t.durations) == 1
    assert feq(t.durations[0], 2.5)


def test_Timer_gauge():
    registry = CollectorRegistry()
    t = Timer("Map Generation", registry, clock=fake_clock(100, 102.5, 200, 201))

    with t:
        pass

    assert feq(registry.get_sample_value("routegen_map_generation_time_seconds"), 2.5)

    # The gauge holds the most recent run only.
    with t:
        pass

    assert feq(registry.get_sample_value("routegen_map_generation_time_seconds"), 1)


def test_Timer_without_registry():
    with Timer("real clock") as t:
        pass

    assert len(t.durations) == 1
    assert t.durations[0] >= 0


def test_parse_bool():
    for s in [True, "true", "True", "t", "y", "yes", "on", "1", " TRUE "]:
        assert parse_bool(s), f"{s!r} should parse as True"

    for s in [False, None, "", "false", "0", "off", "no", "garbage"]:
        assert not parse_bool(s), f"{s!r} should parse as False"


if __name__ == "__main__":
    pytest.main(sys.argv)
