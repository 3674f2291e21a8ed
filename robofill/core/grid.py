# robofill/core/grid.py
"""
Static occupancy grid and the breadth-first distance field.

The grid only knows walls versus walkable cells plus the door coordinate.
Robots live in :mod:`robofill.core.robot_field`; the cell state a robot
observes is derived by combining both in :mod:`robofill.core.simulation`.
"""
from __future__ import annotations

from collections import deque
from typing import Tuple

import bittensor as bt
import numpy as np

from robofill.constants import MAX_GRID_SIZE, UNREACHABLE
from robofill.core.vectors import DIRECTIONS, ZERO, add
from robofill.protocol import Vec3


class GridIndexError(IndexError):
    """A coordinate outside the grid was used where a valid cell is required."""

    def __init__(self, pos: Vec3, size: Vec3):
        super().__init__(f"cell {pos} outside grid of size {size}")
        self.pos = pos
        self.size = size


def _clamp_dim(n: int) -> int:
    return max(0, min(MAX_GRID_SIZE, int(n)))


class GridWorld:
    """Walkability bitmap, door coordinate and live walkable-cell count."""

    def __init__(self, size_x: int, size_y: int, size_z: int):
        self.size: Vec3 = (_clamp_dim(size_x), _clamp_dim(size_y), _clamp_dim(size_z))
        self.walkable = np.zeros(self.size, dtype=bool)
        self.door: Vec3 = ZERO
        self.available_cells = 0

    @property
    def volume(self) -> int:
        return int(self.walkable.size)

    def in_bounds(self, pos: Vec3) -> bool:
        return all(0 <= c < n for c, n in zip(pos, self.size))

    def require(self, pos: Vec3) -> Vec3:
        """Return *pos* unchanged or raise :class:`GridIndexError`."""
        if not self.in_bounds(pos):
            raise GridIndexError(pos, self.size)
        return pos

    def is_walkable(self, pos: Vec3) -> bool:
        return self.in_bounds(pos) and bool(self.walkable[pos])

    def set_walkable(self, pos: Vec3, walkable: bool) -> None:
        """Update one cell and keep ``available_cells`` in step with it."""
        self.require(pos)
        before = bool(self.walkable[pos])
        if before == walkable:
            return
        self.walkable[pos] = walkable
        self.available_cells += 1 if walkable else -1

    def set_door(self, pos: Vec3) -> None:
        self.door = self.require(pos)

    def count_walkable(self) -> int:
        return int(np.count_nonzero(self.walkable))


class DistanceField:
    """Shortest 6-connected path length from the door to every cell."""

    def __init__(self, grid: GridWorld):
        self.grid = grid
        self.values = np.full(grid.size, UNREACHABLE, dtype=np.int64)
        self.stale = True

    def invalidate(self) -> None:
        self.stale = True

    def bfs(self) -> np.ndarray:
        """
        Recompute every distance from the door.

        Distances are reset to ``UNREACHABLE`` first; walls are never
        entered. Also recomputes ``available_cells`` exactly.
        """
        grid = self.grid
        self.values = np.full(grid.size, UNREACHABLE, dtype=np.int64)
        grid.available_cells = grid.count_walkable()
        self.stale = False

        if not grid.in_bounds(grid.door):
            bt.logging.warning(f"Door {grid.door} outside grid {grid.size}; distances cleared")
            return self.values

        self.values[grid.door] = 0
        queue = deque([grid.door])
        while queue:
            v = queue.popleft()
            dist = self.values[v] + 1
            for d in DIRECTIONS:
                nxt = add(v, d)
                if not grid.is_walkable(nxt):
                    continue
                if self.values[nxt] != UNREACHABLE:
                    continue
                self.values[nxt] = dist
                queue.append(nxt)
        return self.values

    def distance(self, pos: Vec3) -> int:
        self.grid.require(pos)
        if self.stale:
            self.bfs()
        return int(self.values[pos])

    def reachable_cells(self) -> Tuple[int, int]:
        """(reachable walkable cells, walkable cells) – handy diagnostics."""
        reached = np.count_nonzero(self.grid.walkable & (self.values != UNREACHABLE))
        return int(reached), self.grid.count_walkable()
