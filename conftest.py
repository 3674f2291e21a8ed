"""Pytest configuration for ensuring local package imports."""
from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def _ensure_repo_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parent
    repo_str = str(repo_root)
    if repo_str not in sys.path:
        sys.path.insert(0, repo_str)


_ensure_repo_on_syspath()

from robofill.core.simulation import Simulation  # noqa: E402
from robofill.protocol import CellState  # noqa: E402


@pytest.fixture
def demo_sim() -> Simulation:
    """Deterministic simulation on the built-in 3×4×4 demo room."""
    sim = Simulation(seed=0, active_probability=100)
    sim.create_demo_grid()
    return sim


@pytest.fixture
def walled_block():
    """Factory for 3×3×3 neighbourhoods: all walls, centre occupied, then overrides."""

    def _make(cells=None):
        block = np.full((3, 3, 3), CellState.WALL, dtype=np.int8)
        block[1, 1, 1] = CellState.OCCUPIED
        for (dx, dy, dz), state in (cells or {}).items():
            block[dx + 1, dy + 1, dz + 1] = state
        return block

    return _make
