import argparse
from typing import List, Optional

import bittensor as bt

from robofill.constants import (
    DEFAULT_ACTIVE_PROBABILITY,
    DEFAULT_RUNS,
    DEFAULT_SEED,
    EVENTS_RETENTION_SIZE,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the robofill self-assembly simulation on a catalog map."
    )
    bt.logging.add_args(parser)

    parser.add_argument("--map", type=int, help="Catalog map index", default=0)

    parser.add_argument(
        "--maps_dir",
        type=str,
        help="Directory of *.map files to use instead of the built-in catalog",
        default=None,
    )

    parser.add_argument(
        "--list_maps",
        action="store_true",
        help="Print the catalog and exit",
        default=False,
    )

    parser.add_argument(
        "--sim.p",
        type=int,
        help="Probability (0-100) that an active robot acts in a step",
        default=DEFAULT_ACTIVE_PROBABILITY,
    )

    parser.add_argument(
        "--sim.runs",
        type=int,
        help="Number of runs to aggregate",
        default=DEFAULT_RUNS,
    )

    parser.add_argument(
        "--sim.seed",
        type=int,
        help="Base seed; every run derives its own seed from it",
        default=DEFAULT_SEED,
    )

    parser.add_argument(
        "--sim.max_steps",
        type=int,
        help="Stop a run after this many steps (default: scaled to the grid volume)",
        default=None,
    )

    parser.add_argument(
        "--events_dir",
        type=str,
        help="Write one line per run to <events_dir>/events.log",
        default=None,
    )

    parser.add_argument(
        "--events_retention_size",
        type=int,
        help="Rotate events.log after this many bytes",
        default=EVENTS_RETENTION_SIZE,
    )

    return parser


def read_config(args: Optional[List[str]] = None) -> bt.config:
    return bt.config(build_parser(), args=args)


__all__ = ["build_parser", "read_config"]
