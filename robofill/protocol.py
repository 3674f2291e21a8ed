# robofill/protocol.py
# -----------------------------------------------------------------------------
#  robofill – shared value types
# -----------------------------------------------------------------------------
"""Shared enums and dataclasses.

* Integer codes exchanged with callers (cell types, renderer diffs).
* :class:`MapSpec` – a map catalog entry with a compact msgpack encoding.
* :class:`RunMetrics` – the summary of one finished (or capped) run.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import Tuple

import msgpack
import numpy as np

from robofill.constants import MAP_FORMAT_VERSION

Vec3 = Tuple[int, int, int]

# --------------------------------------------------------------------------- #
# 1.  Integer codes                                                            #
# --------------------------------------------------------------------------- #


class CellType(IntEnum):
    """Codes accepted by ``set_cell`` and returned by ``get_cell``."""

    EMPTY = 0
    WALL = 1
    ROBOT = 2
    SETTLED_ROBOT = 3
    DOOR = 4
    SLEEPING_ROBOT = 5  # output only


class CellState(IntEnum):
    """What a robot sees when it looks at a cell."""

    WALL = 0
    OCCUPIED = 1
    FREE = 2


class RobotDiff(IntEnum):
    """3-bit transition code reported by ``pop_robot_state``."""

    NO_CHANGE = 0
    MOVING = 1
    STOPPED = 2
    SETTLED = 3
    SLEEPING = 4
    INVALID = 5


class Activity(IntEnum):
    """Activity of a robot slot as last seen by the renderer."""

    IDLE = 0
    ACTIVE = 1
    SLEEPING = 2
    SETTLED = 3


# --------------------------------------------------------------------------- #
# 2.  Map catalog entries                                                      #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class MapSpec:
    """A map: grid size, door and a packed walkable bitset.

    The bitset is :func:`numpy.packbits` over the ``(x, y, z)`` array in C
    order, so *z* varies fastest, then *y*, then *x*. A set bit is walkable.
    """

    name: str
    size: Vec3
    start: Vec3
    walkable: bytes
    version: str = MAP_FORMAT_VERSION

    @property
    def volume(self) -> int:
        sx, sy, sz = self.size
        return sx * sy * sz

    @staticmethod
    def from_array(name: str, walkable: np.ndarray, start: Vec3) -> "MapSpec":
        grid = np.asarray(walkable, dtype=bool)
        if grid.ndim != 3:
            raise ValueError(f"map '{name}' must be 3-dimensional, got {grid.ndim}")
        bits = np.packbits(grid.ravel(order="C"))
        return MapSpec(
            name=name,
            size=tuple(int(n) for n in grid.shape),  # type: ignore[arg-type]
            start=tuple(int(c) for c in start),      # type: ignore[arg-type]
            walkable=bits.tobytes(),
        )

    def to_array(self) -> np.ndarray:
        raw = np.frombuffer(self.walkable, dtype=np.uint8)
        if raw.size * 8 < self.volume:
            raise ValueError(
                f"map '{self.name}' bitset holds {raw.size * 8} cells, "
                f"expected {self.volume}"
            )
        bits = np.unpackbits(raw, count=self.volume)
        return bits.astype(bool).reshape(self.size)

    # msgpack helpers for the on-disk catalog
    def pack(self) -> bytes:
        return msgpack.packb(asdict(self), use_bin_type=True)

    @staticmethod
    def unpack(blob: bytes) -> "MapSpec":
        obj = msgpack.unpackb(blob, raw=False)
        try:
            return MapSpec(
                name=obj["name"],
                size=tuple(obj["size"]),
                start=tuple(obj["start"]),
                walkable=bytes(obj["walkable"]),
                version=obj.get("version", MAP_FORMAT_VERSION),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed map blob: {e}") from e


# --------------------------------------------------------------------------- #
# 3.  Run results                                                              #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class RunMetrics:
    map_name: str
    completed: bool
    simulation_steps: int
    makespan: int
    available_cells: int
    robot_count: int
    t_total: int
    t_max: int
    e_total: int
    e_max: int
    stalled: int = 0
    dropped: int = 0


__all__ = [
    "Vec3",
    "CellType",
    "CellState",
    "RobotDiff",
    "Activity",
    "MapSpec",
    "RunMetrics",
]
