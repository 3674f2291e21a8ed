# robofill/core/robot_field.py
"""Bounded robot collection and the per-step cell → robot index."""
from __future__ import annotations

from typing import Iterator, List, Optional

import bittensor as bt
import numpy as np

from robofill.core.grid import GridWorld
from robofill.core.robot import Robot
from robofill.protocol import Vec3

NO_ROBOT = -1


class RobotCollection:
    """
    Append-only robot storage with a fixed capacity.

    A full collection rejects new robots: :meth:`add` returns ``None`` and
    ``dropped`` counts the rejected requests.
    """

    def __init__(self, capacity: int):
        self.capacity = max(0, int(capacity))
        self._robots: List[Robot] = []
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._robots)

    def __iter__(self) -> Iterator[Robot]:
        return iter(self._robots)

    def __getitem__(self, index: int) -> Robot:
        return self._robots[index]

    @property
    def full(self) -> bool:
        return len(self._robots) >= self.capacity

    def add(self, position: Vec3, *, active: bool = True) -> Optional[Robot]:
        if self.full:
            self.dropped += 1
            bt.logging.warning(
                f"Robot capacity {self.capacity} reached; request at {position} dropped "
                f"({self.dropped} so far)"
            )
            return None
        robot = Robot(index=len(self._robots), position=position, active=active)
        self._robots.append(robot)
        return robot

    def clear(self) -> None:
        self._robots.clear()
        self.dropped = 0


class RobotField:
    """Which robot, if any, each cell holds for the current step."""

    def __init__(self, grid: GridWorld):
        self.grid = grid
        self.cells = np.full(grid.size, NO_ROBOT, dtype=np.int32)

    def clear(self) -> None:
        self.cells.fill(NO_ROBOT)

    def rebuild(self, robots: RobotCollection) -> None:
        """Register robots in index order; the lowest index wins a shared cell."""
        self.clear()
        for robot in robots:
            pos = robot.position
            if not self.grid.is_walkable(pos):
                bt.logging.trace(f"Robot {robot.index} at unwalkable cell {pos}; not in field")
                continue
            holder = self.cells[pos]
            if holder != NO_ROBOT:
                bt.logging.trace(f"Robot {robot.index} collides with robot {holder} at {pos}")
                continue
            self.cells[pos] = robot.index

    def register(self, robot: Robot) -> bool:
        """Claim the robot's cell if it is walkable and unclaimed."""
        pos = robot.position
        if not self.grid.is_walkable(pos) or self.cells[pos] != NO_ROBOT:
            return False
        self.cells[pos] = robot.index
        return True

    def robot_at(self, pos: Vec3) -> Optional[int]:
        if not self.grid.in_bounds(pos):
            return None
        index = int(self.cells[pos])
        return None if index == NO_ROBOT else index
