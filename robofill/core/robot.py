# robofill/core/robot.py
"""
A single robot and its Look-Compute-Move decision policy.

The policy only sees two 3×3×3 snapshots of its surroundings and its own
small memory (preferred direction, last move, whether it ever moved). Branch
order matters; the first one that applies wins:

1. all six faces are walls        → deactivate (stuck)
2. settle test passes             → deactivate (settled)
3. preferred direction is open    → move there
4. orthogonal scan finds a free   → move there
5. the cell below is not a wall   → move down
6. a neighbour is occupied        → wait in place
7. otherwise                      → deactivate and report a stall

A robot that waited may step back the way it came on its next decision.
A robot sharing its cell with a lower-index active robot is invisible to
the others and never settles there.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

import bittensor as bt
import numpy as np

from robofill.constants import DEFAULT_PREFERRED_DIRECTION
from robofill.core.reachability import ReachabilityOracle
from robofill.core.vectors import (
    BACK,
    DIRECTIONS,
    DOWN,
    FORWARD,
    LEFT,
    RIGHT,
    UP,
    ZERO,
    add,
    dot,
    local_index,
    neg,
    orthogonal,
    successor,
)
from robofill.protocol import Activity, CellState, Vec3

AXIS_PAIRS = ((LEFT, RIGHT), (DOWN, UP), (BACK, FORWARD))


class Decision(Enum):
    BLOCKED = "blocked"
    SETTLED = "settled"
    PREFERRED = "preferred"
    ORTHOGONAL = "orthogonal"
    FALLBACK = "fallback"
    WAIT = "wait"
    STALLED = "stalled"


@dataclass
class Robot:
    index: int
    position: Vec3
    active: bool = True
    target: Optional[Vec3] = None
    preferred_direction: Vec3 = DEFAULT_PREFERRED_DIRECTION
    primary_dir: Vec3 = ZERO
    secondary_dir: Vec3 = ZERO
    last_move: Vec3 = ZERO
    ever_moved: bool = False
    active_for: int = 0
    settled_for: int = 0
    sleeping: bool = False
    waiting: bool = False
    oracle: ReachabilityOracle = field(
        default_factory=ReachabilityOracle, repr=False, compare=False
    )

    def __post_init__(self):
        if self.target is None:
            self.target = self.position

    # ------------------------------------------------------------------
    #  State helpers
    # ------------------------------------------------------------------
    @property
    def activity(self) -> Activity:
        if not self.active:
            return Activity.SETTLED
        return Activity.SLEEPING if self.sleeping else Activity.ACTIVE

    def deactivate(self) -> None:
        self.active = False
        self.sleeping = False
        self.waiting = False
        self.primary_dir = ZERO
        self.secondary_dir = ZERO
        self.target = self.position

    def set_next_move(self, rel: Vec3) -> None:
        self.ever_moved = True
        self.target = add(self.position, rel)
        self.last_move = rel

    def move(self) -> bool:
        """Commit the chosen target; ``True`` if the cell changed."""
        moved = self.target != self.position
        self.position = self.target
        return moved

    # ------------------------------------------------------------------
    #  Look-Compute
    # ------------------------------------------------------------------
    def can_settle(self, faces: Dict[Vec3, CellState]) -> bool:
        """Moved at least once and boxed in on every axis by a wall."""
        if not self.ever_moved:
            return False
        return all(
            faces[a] == CellState.WALL or faces[b] == CellState.WALL
            for a, b in AXIS_PAIRS
        )

    def _init_primary(self, faces: Dict[Vec3, CellState], back: Vec3) -> bool:
        self.primary_dir = ZERO
        self.secondary_dir = ZERO
        for d in orthogonal(self.preferred_direction):
            if d == back or faces[d] != CellState.FREE:
                continue
            self.primary_dir = d
            sec = successor(d)
            while dot(sec, self.preferred_direction) != 0:
                sec = successor(sec)
            self.secondary_dir = sec
            return True
        return False

    def look_compute(
        self,
        now: np.ndarray,
        planar: np.ndarray,
        distance: Optional[int] = None,
        shared: bool = False,
    ) -> Decision:
        """
        Decide this step's target from two neighbourhood snapshots.

        Parameters
        ----------
        now
            3×3×3 ``CellState`` block of the current topology.
        planar
            An independent copy of the same block. Its lower and upper layers
            are overwritten with walls for the horizontal settle check.
        distance
            BFS distance of the robot's cell from the door, only used to flag
            settles that happen at an unexpected time.
        shared
            Another active robot is the one seen in this cell. Settling is
            skipped and a robot with no move waits instead of stalling.
        """
        self.active_for += 1
        self.target = self.position
        back = ZERO if self.waiting else neg(self.last_move)
        self.waiting = False
        faces = {d: CellState(int(now[local_index(d)])) for d in DIRECTIONS}

        if all(s == CellState.WALL for s in faces.values()):
            self.deactivate()
            return Decision.BLOCKED

        if not shared and self.can_settle(faces):
            planar[:, 0, :] = CellState.WALL
            planar[:, 2, :] = CellState.WALL
            if self.oracle.settle_preserves_reachability(
                now
            ) and self.oracle.settle_preserves_reachability(planar):
                if distance is not None and self.active_for != distance + 1:
                    bt.logging.debug(
                        f"Robot {self.index} settled after {self.active_for} active steps "
                        f"at distance {distance}"
                    )
                self.deactivate()
                return Decision.SETTLED

        pref = self.preferred_direction
        if faces[pref] != CellState.WALL and pref != back:
            self.primary_dir = ZERO
            self.secondary_dir = ZERO
            self.set_next_move(pref)
            return Decision.PREFERRED

        if self._init_primary(faces, back):
            self.set_next_move(self.primary_dir)
            return Decision.ORTHOGONAL

        if faces[DOWN] != CellState.WALL:
            self.set_next_move(DOWN)
            return Decision.FALLBACK

        if shared or CellState.OCCUPIED in faces.values():
            self.waiting = True
            return Decision.WAIT

        bt.logging.warning(
            f"Robot {self.index} at {self.position} found no move; deactivating"
        )
        self.deactivate()
        return Decision.STALLED
