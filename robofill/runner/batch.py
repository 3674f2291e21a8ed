"""
robofill.runner.batch
─────────────────────
Run a catalog map to completion, possibly many times, and aggregate the
resulting metrics.

Every run in a batch gets its own seed drawn from one base ``random.Random``,
so a batch with a fixed base seed is reproducible run for run.
"""
from __future__ import annotations

import random
from dataclasses import asdict
from typing import List, Optional

import bittensor as bt
import pandas as pd

from robofill.constants import DEFAULT_ACTIVE_PROBABILITY, MAX_STEPS_FACTOR
from robofill.core.simulation import Simulation
from robofill.maps.catalog import MapCatalog
from robofill.protocol import RunMetrics
from robofill.utils.logging import ColoredLogger

SUMMARY_METRICS = [
    "available_cells",
    "makespan",
    "t_total",
    "t_max",
    "e_total",
    "e_max",
]


def default_max_steps(sim: Simulation) -> int:
    return MAX_STEPS_FACTOR * max(1, sim.grid.volume)


def run_once(sim: Simulation, max_steps: Optional[int] = None) -> RunMetrics:
    """Step *sim* until it completes or the safety cap is hit."""
    cap = max_steps if max_steps is not None else default_max_steps(sim)
    while not sim.is_simulation_complete() and sim.steps < cap:
        sim.simulate_step()

    if not sim.is_simulation_complete():
        bt.logging.warning(
            f"Run on '{sim.map_name}' stopped at the {cap}-step cap before completing"
        )
    return sim.run_metrics()


def run_batch(
    map_index: int,
    runs: int,
    *,
    p: int = DEFAULT_ACTIVE_PROBABILITY,
    seed: Optional[int] = None,
    catalog: Optional[MapCatalog] = None,
    max_steps: Optional[int] = None,
    events=None,
) -> List[RunMetrics]:
    """
    Run catalog map *map_index* ``runs`` times.

    Parameters
    ----------
    map_index
        Catalog index; a bad index falls back to the first map.
    runs
        Number of runs.
    p
        Active probability (0-100) used for every run.
    seed
        Base seed. ``None`` draws a fresh one.
    events
        Optional logger from :func:`robofill.utils.logging.setup_events_logger`.

    Returns
    -------
    list of RunMetrics
        One entry per run; empty when the catalog has no maps.
    """
    if seed is None:
        seed = random.randrange(2**32)
    base = random.Random(seed)

    sim = Simulation(catalog=catalog, active_probability=p)
    if sim.load_map(map_index) is None:
        return []

    results: List[RunMetrics] = []
    for i in range(runs):
        if i:
            sim.reset_simulation()
        run_seed = base.randrange(2**32)
        sim.rng.seed(run_seed)
        res = run_once(sim, max_steps)
        results.append(res)
        ColoredLogger.run(res, i + 1, runs)
        if events is not None:
            events.event_run(res, run_seed, p)
    return results


def summarize(results: List[RunMetrics]) -> pd.DataFrame:
    """Min, max, mean and population variance of every summary metric."""
    df = pd.DataFrame([asdict(r) for r in results], columns=list(RunMetrics.__dataclass_fields__))
    values = df[SUMMARY_METRICS].astype(float)
    return pd.DataFrame(
        {
            "min": values.min(),
            "max": values.max(),
            "mean": values.mean(),
            "var": values.var(ddof=0),
        }
    )


__all__ = ["run_once", "run_batch", "summarize", "SUMMARY_METRICS"]
