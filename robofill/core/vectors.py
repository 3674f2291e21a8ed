# robofill/core/vectors.py
"""Integer 3-vectors and the fixed table of the six axis directions."""
from __future__ import annotations

from typing import Optional, Tuple

from robofill.protocol import Vec3

ZERO: Vec3 = (0, 0, 0)
UP: Vec3 = (0, 1, 0)
DOWN: Vec3 = (0, -1, 0)
LEFT: Vec3 = (-1, 0, 0)
RIGHT: Vec3 = (1, 0, 0)
FORWARD: Vec3 = (0, 0, 1)
BACK: Vec3 = (0, 0, -1)

# Canonical order; the index is the direction code sent to renderers.
DIRECTIONS: Tuple[Vec3, ...] = (UP, FORWARD, LEFT, DOWN, BACK, RIGHT)

# +x → +y → +z → -x → -y → -z → +x
_SUCCESSOR = {
    RIGHT: UP,
    UP: FORWARD,
    FORWARD: LEFT,
    LEFT: DOWN,
    DOWN: BACK,
    BACK: RIGHT,
}


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def neg(a: Vec3) -> Vec3:
    return (-a[0], -a[1], -a[2])


def dot(a: Vec3, b: Vec3) -> int:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def successor(d: Vec3) -> Vec3:
    """Next direction in the axis cycle; ``ZERO`` for non-axis vectors."""
    return _SUCCESSOR.get(d, ZERO)


def orthogonal(d: Vec3) -> Tuple[Vec3, ...]:
    """The four table directions perpendicular to *d*, in table order."""
    return tuple(o for o in DIRECTIONS if dot(o, d) == 0)


def direction_index(d: Vec3) -> Optional[int]:
    try:
        return DIRECTIONS.index(d)
    except ValueError:
        return None


def local_index(d: Vec3) -> Tuple[int, int, int]:
    """Offset in [-1, 1]³ → index into a 3×3×3 neighbourhood array."""
    return (d[0] + 1, d[1] + 1, d[2] + 1)
