"""
Map catalog: built-in procedural rooms plus msgpack map files on disk.

Built-in maps
    demo         – 3×4×4 walled box, door in the x = 2 wall
    hollow_cube  – n×n×n shell, door in the +x wall
    corridor     – one-cell-wide L-shaped tunnel
    twin_rooms   – two rooms joined by a doorway
    pillars      – a room with seeded full-height pillars
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

import bittensor as bt
import numpy as np

from robofill.constants import (
    DEMO_DOOR,
    DEMO_GRID_SIZE,
    MAP_FILE_SUFFIX,
    PILLARS_DENSITY,
    PILLARS_SEED,
)
from robofill.core.reachability import flood
from robofill.protocol import CellState, MapSpec, Vec3

# ---------------------------------------------------------------------------
# SECTION 1: Generators
# ---------------------------------------------------------------------------


def _room(size: Vec3) -> np.ndarray:
    """Walkable interior with a one-cell wall shell."""
    walk = np.zeros(size, dtype=bool)
    walk[1:-1, 1:-1, 1:-1] = True
    return walk


def _with_door(name: str, walk: np.ndarray, door: Vec3) -> MapSpec:
    walk = walk.copy()
    walk[door] = True
    return MapSpec.from_array(name, walk, door)


def demo_map() -> MapSpec:
    return _with_door("demo", _room(DEMO_GRID_SIZE), DEMO_DOOR)


def hollow_cube(n: int = 6) -> MapSpec:
    if n < 3:
        raise ValueError(f"hollow_cube needs n >= 3, got {n}")
    return _with_door(f"hollow_cube_{n}", _room((n, n, n)), (n - 1, 1, 1))


def corridor(length: int = 8) -> MapSpec:
    """Tunnel along +z from the door, then a turn along +x at the far end."""
    size = (length + 2, 3, length + 2)
    walk = np.zeros(size, dtype=bool)
    walk[1, 1, 1 : length + 1] = True
    walk[1 : length + 1, 1, length] = True
    return _with_door("corridor", walk, (1, 1, 0))


def twin_rooms(room: int = 4) -> MapSpec:
    """Two room×3×room rooms side by side along x, one doorway between them."""
    size = (2 * room + 3, 5, room + 2)
    walk = np.zeros(size, dtype=bool)
    walk[1 : room + 1, 1:4, 1 : room + 1] = True
    walk[room + 2 : 2 * room + 2, 1:4, 1 : room + 1] = True
    walk[room + 1, 1, room // 2] = True
    return _with_door("twin_rooms", walk, (0, 1, 1))


def pillars(size: Vec3 = (8, 4, 8), seed: int = PILLARS_SEED,
            density: float = PILLARS_DENSITY) -> MapSpec:
    """Room with random full-height pillars; pockets cut off from the door are walled."""
    rng = random.Random(seed)
    walk = _room(size)
    door = (size[0] - 1, 1, 1)
    for x in range(1, size[0] - 1):
        for z in range(1, size[2] - 1):
            if (x, z) == (door[0] - 1, door[2]):
                continue
            if rng.random() < density:
                walk[x, 1:-1, z] = False
    walk[door] = True

    block = np.where(walk, CellState.FREE, CellState.WALL).astype(np.int8)
    walk &= flood(block, door)
    return MapSpec.from_array(f"pillars_{seed}", walk, door)


BUILTIN_GENERATORS: Tuple[Callable[[], MapSpec], ...] = (
    demo_map,
    hollow_cube,
    corridor,
    twin_rooms,
    pillars,
)

# ---------------------------------------------------------------------------
# SECTION 2: Catalog
# ---------------------------------------------------------------------------


class MapCatalog:
    """Ordered collection of maps addressed by index."""

    def __init__(self, maps: Iterable[MapSpec] = ()):
        self._maps: List[MapSpec] = list(maps)

    def __len__(self) -> int:
        return len(self._maps)

    def names(self) -> List[str]:
        return [m.name for m in self._maps]

    def add(self, spec: MapSpec) -> int:
        self._maps.append(spec)
        return len(self._maps) - 1

    def get(self, index: int) -> Optional[MapSpec]:
        """Map at *index*; the first map for a bad index, ``None`` if empty."""
        if not self._maps:
            bt.logging.warning("Map catalog is empty")
            return None
        if not 0 <= index < len(self._maps):
            bt.logging.warning(
                f"Invalid map index {index} (catalog has {len(self._maps)}); "
                f"using '{self._maps[0].name}'"
            )
            return self._maps[0]
        return self._maps[index]

    def save(self, directory: Path) -> List[Path]:
        directory.mkdir(parents=True, exist_ok=True)
        written = []
        for i, spec in enumerate(self._maps):
            fp = directory / f"{i:03d}_{spec.name}{MAP_FILE_SUFFIX}"
            fp.write_bytes(spec.pack())
            written.append(fp)
        return written

    @classmethod
    def from_dir(cls, directory: Path) -> "MapCatalog":
        """Load every ``*.map`` file in *directory*, sorted by file name."""
        maps = []
        for fp in sorted(directory.glob(f"*{MAP_FILE_SUFFIX}")):
            try:
                spec = MapSpec.unpack(fp.read_bytes())
                spec.to_array()
                maps.append(spec)
            except ValueError as e:
                bt.logging.error(f"Skipping map file {fp.name}: {e}")
        bt.logging.info(f"Loaded {len(maps)} maps from {directory}")
        return cls(maps)

    @classmethod
    def builtin(cls) -> "MapCatalog":
        return cls(gen() for gen in BUILTIN_GENERATORS)


__all__ = [
    "MapCatalog",
    "demo_map",
    "hollow_cube",
    "corridor",
    "twin_rooms",
    "pillars",
]
