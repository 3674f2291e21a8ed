"""
Batch runner determinism and metric aggregation.

Same idea as replaying a task many times: a batch with a fixed base seed
must return identical results every time it is run.
"""
from __future__ import annotations

import pytest

from robofill.core.simulation import Simulation
from robofill.maps.catalog import MapCatalog
from robofill.protocol import RunMetrics
from robofill.runner.batch import SUMMARY_METRICS, run_batch, run_once, summarize
from robofill.utils.logging import ColoredLogger, format_run_event, setup_events_logger


def _metrics(**overrides) -> RunMetrics:
    base = dict(
        map_name="demo", completed=True, simulation_steps=10, makespan=10,
        available_cells=5, robot_count=5, t_total=8, t_max=3, e_total=13, e_max=4,
    )
    base.update(overrides)
    return RunMetrics(**base)


def test_run_once_completes_demo(demo_sim):
    res = run_once(demo_sim)
    assert res.completed
    assert res.makespan == res.simulation_steps == 11
    assert res.map_name == "demo"
    assert res.stalled == 0 and res.dropped == 0


def test_run_once_respects_step_cap(demo_sim):
    demo_sim.set_active_probability(0)
    res = run_once(demo_sim, max_steps=7)
    assert not res.completed
    assert res.simulation_steps == 7


def test_full_probability_runs_are_identical():
    results = run_batch(0, 3, p=100, seed=5)
    assert len(results) == 3
    assert all(r == results[0] for r in results)
    assert results[0].completed


def test_batch_is_reproducible_from_seed():
    first = run_batch(0, 4, p=60, seed=1234, max_steps=2000)
    second = run_batch(0, 4, p=60, seed=1234, max_steps=2000)
    assert first == second


def test_empty_catalog_runs_nothing():
    assert run_batch(0, 3, catalog=MapCatalog(), seed=0) == []


def test_batch_reuses_one_map():
    results = run_batch(1, 2, p=100, seed=0, max_steps=3)
    assert [r.map_name for r in results] == ["hollow_cube_6"] * 2
    assert all(r.simulation_steps == 3 for r in results)


def test_summarize_statistics():
    results = [_metrics(makespan=10), _metrics(makespan=14), _metrics(makespan=12, t_max=5)]
    table = summarize(results)

    assert list(table.index) == SUMMARY_METRICS
    assert list(table.columns) == ["min", "max", "mean", "var"]
    assert table.loc["makespan", "min"] == 10
    assert table.loc["makespan", "max"] == 14
    assert table.loc["makespan", "mean"] == pytest.approx(12.0)
    assert table.loc["makespan", "var"] == pytest.approx(8 / 3)
    assert table.loc["available_cells", "var"] == 0
    assert table.loc["t_max", "mean"] == pytest.approx(11 / 3)


def test_events_log_gets_one_line_per_run(tmp_path):
    events = setup_events_logger(str(tmp_path), 1024 * 1024)
    run_batch(0, 2, p=100, seed=0, events=events)
    for handler in events.handlers:
        handler.flush()

    lines = (tmp_path / "events.log").read_text().splitlines()
    assert len(lines) == 2
    assert all("EVENT" in line and "map_name=demo" in line for line in lines)
    assert all(line.split(" | ", 2)[2].startswith("seed=") for line in lines)


def test_events_logger_reuses_its_file_handler(tmp_path):
    first = setup_events_logger(str(tmp_path), 1024)
    count = len(first.handlers)
    second = setup_events_logger(str(tmp_path), 1024)
    assert second is first
    assert len(second.handlers) == count


def test_run_event_line_lists_every_metric():
    line = format_run_event(_metrics(makespan=12), seed=7, p=50)
    fields = dict(part.split("=", 1) for part in line.split(" "))

    assert line.startswith("seed=7 p=50 ")
    assert fields["makespan"] == "12"
    assert fields["completed"] == "True"
    assert set(fields) == {"seed", "p", *RunMetrics.__dataclass_fields__}


def test_run_and_summary_text():
    res = _metrics()
    assert ColoredLogger.run_line(res, 2, 10) == (
        "Run   2/10 : map=demo completed=True makespan=10 T=8/3 E=13/4 robots=5"
    )

    text = ColoredLogger.summary_text(summarize([res, _metrics(makespan=14)]), 2, 2)
    assert "(2 runs, 2 completed)" in text
    assert "makespan" in text and "12.00" in text
