# robofill/cli.py
# -------------------------------------------------------------------------
#  robofill batch runner
# -------------------------------------------------------------------------
#  1) Build the map catalog (built-in or a directory of *.map files).
#  2) Run the chosen map --sim.runs times with --sim.p.
#  3) Log min / max / mean / variance of every metric.
# -------------------------------------------------------------------------

from pathlib import Path
from typing import List, Optional

import bittensor as bt

from robofill.config import read_config
from robofill.maps.catalog import MapCatalog
from robofill.runner.batch import run_batch, summarize
from robofill.utils.logging import ColoredLogger, setup_events_logger


def _catalog(config) -> MapCatalog:
    if config.maps_dir:
        return MapCatalog.from_dir(Path(config.maps_dir))
    return MapCatalog.builtin()


def main(args: Optional[List[str]] = None) -> int:
    config = read_config(args)
    bt.logging(config=config)

    catalog = _catalog(config)
    if config.list_maps:
        for i, name in enumerate(catalog.names()):
            ColoredLogger.info(f"{i:3d}  {name}", ColoredLogger.CYAN)
        return 0

    events = None
    if config.events_dir:
        events = setup_events_logger(config.events_dir, config.events_retention_size)

    results = run_batch(
        config.map,
        config.sim.runs,
        p=config.sim.p,
        seed=config.sim.seed,
        catalog=catalog,
        max_steps=config.sim.max_steps,
        events=events,
    )
    if not results:
        ColoredLogger.error("No maps available; nothing to run")
        return 1

    completed = sum(1 for r in results if r.completed)
    ColoredLogger.summary(summarize(results), len(results), completed)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
