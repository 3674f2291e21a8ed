# robofill/core/reachability.py
"""
Local connectivity inside a robot's 3×3×3 neighbourhood.

A block is a ``(3, 3, 3)`` array of :class:`~robofill.protocol.CellState`
values indexed by ``offset + 1``. Connectivity is 6-connected and blocked by
``WALL`` cells only; ``OCCUPIED`` cells can be passed through.
"""
from __future__ import annotations

import numpy as np

from robofill.core.vectors import local_index
from robofill.protocol import CellState, Vec3

CENTER = (1, 1, 1)


def _grow(reach: np.ndarray) -> np.ndarray:
    """One 6-neighbour dilation step of a boolean 3D mask."""
    grown = reach.copy()
    grown[1:, :, :] |= reach[:-1, :, :]
    grown[:-1, :, :] |= reach[1:, :, :]
    grown[:, 1:, :] |= reach[:, :-1, :]
    grown[:, :-1, :] |= reach[:, 1:, :]
    grown[:, :, 1:] |= reach[:, :, :-1]
    grown[:, :, :-1] |= reach[:, :, 1:]
    return grown


def flood(block: np.ndarray, seed: tuple) -> np.ndarray:
    """Cells reachable from the array index *seed*, iterated to a fixed point."""
    passable = block != CellState.WALL
    reach = np.zeros(block.shape, dtype=bool)
    if not passable[seed]:
        return reach
    reach[seed] = True
    while True:
        grown = _grow(reach) & passable
        if np.array_equal(grown, reach):
            return reach
        reach = grown


class ReachabilityOracle:
    """Answers whether a robot may turn its own cell into a wall."""

    @staticmethod
    def reachable(block: np.ndarray, frm: Vec3, to: Vec3) -> bool:
        """Whether local offset *to* can be reached from local offset *frm*."""
        src, dst = local_index(frm), local_index(to)
        if block[src] == CellState.WALL or block[dst] == CellState.WALL:
            return False
        return bool(flood(block, src)[dst])

    @staticmethod
    def settle_preserves_reachability(block: np.ndarray) -> bool:
        """
        Check that walling the centre disconnects no pair of other cells.

        Every ordered pair of non-centre cells connected with the centre
        ``OCCUPIED`` must stay connected with the centre ``WALL``. The pairs
        are evaluated per source cell: a source's reachable set before and
        after is computed once and compared.
        """
        now = block.copy()
        now[CENTER] = CellState.OCCUPIED
        after = block.copy()
        after[CENTER] = CellState.WALL

        for src in np.ndindex(*block.shape):
            if src == CENTER or now[src] == CellState.WALL:
                continue
            lost = flood(now, src) & ~flood(after, src)
            lost[CENTER] = False
            if lost.any():
                return False
        return True
