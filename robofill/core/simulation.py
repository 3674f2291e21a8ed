# robofill/core/simulation.py
"""
One self-contained simulation: grid, robots, derived fields and metrics.

``Simulation`` is the public boundary of the package. Every operation here
is total: bad coordinates, a full robot collection or an unknown map index
produce sentinels and log lines instead of exceptions.

Each call to :meth:`Simulation.simulate_step` runs these phases in order:

1. advance the step counter
2. look/compute for every active robot against the state before any move;
   an empty door reads as occupied, and a robot that deactivates turns
   into wall for the robots after it in index order
3. spawn a robot at the door if the door holds none
4. commit every active robot's target (no collision arbitration)
5. rebuild the robot field (lowest index wins a shared cell)
6. update metrics
"""
from __future__ import annotations

import random
from typing import Dict, Optional, Tuple

import bittensor as bt
import numpy as np

from robofill.constants import (
    DEFAULT_ACTIVE_PROBABILITY,
    DEMO_GRID_SIZE,
    MAX_ACTIVE_PROBABILITY,
    MIN_ACTIVE_PROBABILITY,
    WALL_SETTLED_FOR,
)
from robofill.core.grid import DistanceField, GridIndexError, GridWorld
from robofill.core.metrics import MetricsCollector
from robofill.core.robot import Decision
from robofill.core.robot_field import NO_ROBOT, RobotCollection, RobotField
from robofill.core.vectors import ZERO, direction_index
from robofill.maps.catalog import MapCatalog, demo_map
from robofill.protocol import Activity, CellState, CellType, MapSpec, RobotDiff, RunMetrics, Vec3

NO_DIRECTION = 6
INVALID_INDEX = -1

# (last popped activity, live activity) → renderer transition
_TRANSITIONS: Dict[Tuple[Activity, Activity], RobotDiff] = {
    (Activity.IDLE, Activity.IDLE): RobotDiff.NO_CHANGE,
    (Activity.IDLE, Activity.ACTIVE): RobotDiff.MOVING,
    (Activity.IDLE, Activity.SLEEPING): RobotDiff.SLEEPING,
    (Activity.IDLE, Activity.SETTLED): RobotDiff.SETTLED,
    (Activity.ACTIVE, Activity.ACTIVE): RobotDiff.MOVING,
    (Activity.ACTIVE, Activity.SLEEPING): RobotDiff.SLEEPING,
    (Activity.ACTIVE, Activity.SETTLED): RobotDiff.SETTLED,
    (Activity.ACTIVE, Activity.IDLE): RobotDiff.STOPPED,
    (Activity.SLEEPING, Activity.SLEEPING): RobotDiff.SLEEPING,
    (Activity.SLEEPING, Activity.ACTIVE): RobotDiff.MOVING,
    (Activity.SLEEPING, Activity.SETTLED): RobotDiff.SETTLED,
    (Activity.SLEEPING, Activity.IDLE): RobotDiff.STOPPED,
    (Activity.SETTLED, Activity.SETTLED): RobotDiff.NO_CHANGE,
}


class Simulation:
    """Owns one grid, its robots and the step clock."""

    def __init__(
        self,
        size: Vec3 = DEMO_GRID_SIZE,
        *,
        catalog: Optional[MapCatalog] = None,
        active_probability: int = DEFAULT_ACTIVE_PROBABILITY,
        seed: Optional[int] = None,
    ):
        self.catalog = catalog if catalog is not None else MapCatalog.builtin()
        self.rng = random.Random(seed)
        self.active_probability = DEFAULT_ACTIVE_PROBABILITY
        self.set_active_probability(active_probability)
        self.init_grid(*size)

    # ------------------------------------------------------------------
    #  Setup
    # ------------------------------------------------------------------
    def init_grid(self, size_x: int, size_y: int, size_z: int) -> None:
        """Fresh grid of the given (clamped) size; every piece of state cleared."""
        self.grid = GridWorld(size_x, size_y, size_z)
        self.distances = DistanceField(self.grid)
        self.field = RobotField(self.grid)
        self.robots = RobotCollection(self.grid.volume)
        self.metrics = MetricsCollector(self.grid.volume)
        self._map: Optional[MapSpec] = None
        self._clear_run_state()

    def _clear_run_state(self) -> None:
        self.robots.clear()
        self.field.clear()
        self.metrics.reset()
        self.steps = 0
        self.complete = False
        self._last_popped = np.full(self.robots.capacity, Activity.IDLE, dtype=np.int8)

    def set_cell(self, x: int, y: int, z: int, value: int) -> bool:
        """Write one cell; ``False`` when the coordinate or value is rejected."""
        pos = (x, y, z)
        try:
            self.grid.require(pos)
            cell_type = CellType(value)
        except GridIndexError as e:
            bt.logging.debug(f"set_cell ignored: {e}")
            return False
        except ValueError:
            bt.logging.warning(f"set_cell ignored: unknown cell type {value}")
            return False
        if cell_type == CellType.SLEEPING_ROBOT:
            bt.logging.warning("set_cell ignored: SLEEPING_ROBOT is an output-only type")
            return False

        self.grid.set_walkable(pos, cell_type != CellType.WALL)
        self.distances.invalidate()
        holder = self.field.robot_at(pos)

        if cell_type == CellType.WALL:
            if holder is not None and self.robots[holder].active:
                robot = self.robots[holder]
                robot.deactivate()
                robot.settled_for = WALL_SETTLED_FOR
        elif cell_type in (CellType.ROBOT, CellType.SETTLED_ROBOT):
            active = cell_type == CellType.ROBOT
            if holder is None:
                robot = self.robots.add(pos, active=active)
                if robot is not None:
                    self.field.register(robot)
            else:
                self.robots[holder].active = active
                self.robots[holder].sleeping = False
        elif cell_type == CellType.DOOR:
            self.grid.set_door(pos)
        return True

    def set_start_position(self, x: int, y: int, z: int) -> bool:
        try:
            self.grid.set_door((x, y, z))
        except GridIndexError as e:
            bt.logging.warning(f"set_start_position ignored: {e}")
            return False
        self.distances.invalidate()
        return True

    def set_active_probability(self, p: int) -> None:
        self.active_probability = max(MIN_ACTIVE_PROBABILITY, min(MAX_ACTIVE_PROBABILITY, int(p)))

    def load_map(self, index: int) -> Optional[MapSpec]:
        """Load catalog map *index* (first map for a bad index)."""
        spec = self.catalog.get(index)
        if spec is None:
            return None
        try:
            self.load_map_spec(spec)
        except ValueError as e:
            bt.logging.error(f"Cannot load map '{spec.name}': {e}")
            return None
        return spec

    def load_map_spec(self, spec: MapSpec) -> None:
        walk = spec.to_array()
        self.init_grid(*spec.size)
        sx, sy, sz = self.grid.size
        self.grid.walkable[...] = walk[:sx, :sy, :sz]
        if self.grid.in_bounds(spec.start):
            self.grid.set_door(spec.start)
            self.grid.walkable[spec.start] = True
        else:
            bt.logging.warning(f"Map '{spec.name}' door {spec.start} outside grid {self.grid.size}")
        self.distances.bfs()
        self._map = spec

        reached, walkable = self.distances.reachable_cells()
        bt.logging.info(
            f"Loaded map '{spec.name}' {self.grid.size} | walkable={walkable} "
            f"reachable={reached}"
        )

    def create_demo_grid(self) -> None:
        self.load_map_spec(demo_map())

    # ------------------------------------------------------------------
    #  Stepping
    # ------------------------------------------------------------------
    def _state_grid(self) -> np.ndarray:
        """Cell states as every robot sees them before this step's moves."""
        states = np.where(self.grid.walkable, CellState.FREE, CellState.WALL).astype(np.int8)
        cells = self.field.cells
        held = cells != NO_ROBOT
        if held.any():
            active = np.array([r.active for r in self.robots], dtype=bool)
            states[held] = np.where(active[cells[held]], CellState.OCCUPIED, CellState.WALL)
        # An empty door is where the next robot appears
        door = self.grid.door
        if self.grid.is_walkable(door) and cells[door] == NO_ROBOT:
            states[door] = CellState.OCCUPIED
        return states

    @staticmethod
    def _neighbourhood(padded: np.ndarray, pos: Vec3) -> np.ndarray:
        x, y, z = pos
        return padded[x : x + 3, y : y + 3, z : z + 3].copy()

    def simulate_step(self) -> None:
        if self.distances.stale:
            self.distances.bfs()
        self.steps += 1
        any_active = False
        spawned = False

        padded = np.pad(self._state_grid(), 1, constant_values=CellState.WALL)
        for robot in self.robots:
            if not robot.active:
                continue
            any_active = True
            self.metrics.record_active(robot.index)
            if self.rng.randrange(100) >= self.active_probability:
                robot.sleeping = True
                continue
            robot.sleeping = False
            x, y, z = robot.position
            holder = self.field.robot_at(robot.position)
            shared = (
                holder is not None
                and holder != robot.index
                and padded[x + 1, y + 1, z + 1] != CellState.WALL
            )
            now = self._neighbourhood(padded, robot.position)
            planar = self._neighbourhood(padded, robot.position)
            decision = robot.look_compute(
                now, planar, int(self.distances.values[robot.position]), shared=shared
            )
            if decision is Decision.STALLED:
                self.metrics.record_stall()
            if not robot.active and holder == robot.index:
                # later robots of this step already see the new wall
                padded[x + 1, y + 1, z + 1] = CellState.WALL

        door = self.grid.door
        if self.grid.is_walkable(door) and self.field.robot_at(door) is None:
            spawned = self.robots.add(door) is not None

        for robot in self.robots:
            if robot.active:
                if robot.move():
                    self.metrics.record_move(robot.index)
            else:
                robot.settled_for += 1

        self.field.rebuild(self.robots)
        self.metrics.finish_step(self.steps)
        self.complete = not any_active and not spawned
        bt.logging.trace(
            f"Step {self.steps}: robots={len(self.robots)} active={any_active} "
            f"spawned={spawned}"
        )

    def is_simulation_complete(self) -> bool:
        return self.complete

    def reset_simulation(self) -> None:
        """Reload the last map, or keep the current walls when none was loaded."""
        if self._map is not None:
            self.load_map_spec(self._map)
            return
        self._clear_run_state()
        self.distances.bfs()

    # ------------------------------------------------------------------
    #  Queries
    # ------------------------------------------------------------------
    def get_cell(self, x: int, y: int, z: int) -> int:
        pos = (x, y, z)
        if not self.grid.in_bounds(pos):
            return int(CellType.WALL)
        if pos == self.grid.door:
            return int(CellType.DOOR)
        holder = self.field.robot_at(pos)
        if holder is not None:
            robot = self.robots[holder]
            if not robot.active:
                return int(CellType.SETTLED_ROBOT)
            return int(CellType.SLEEPING_ROBOT if robot.sleeping else CellType.ROBOT)
        return int(CellType.EMPTY if self.grid.walkable[pos] else CellType.WALL)

    def get_distance(self, x: int, y: int, z: int) -> int:
        try:
            return self.distances.distance((x, y, z))
        except GridIndexError:
            return -1

    def get_grid_size_x(self) -> int:
        return self.grid.size[0]

    def get_grid_size_y(self) -> int:
        return self.grid.size[1]

    def get_grid_size_z(self) -> int:
        return self.grid.size[2]

    def get_available_cells(self) -> int:
        return self.grid.available_cells

    def get_makespan(self) -> int:
        return self.metrics.makespan

    def get_t_total(self) -> int:
        return self.metrics.t_total

    def get_t_max(self) -> int:
        return self.metrics.t_max

    def get_e_total(self) -> int:
        return self.metrics.e_total

    def get_e_max(self) -> int:
        return self.metrics.e_max

    def get_simulation_steps(self) -> int:
        return self.steps

    def get_robot_count(self) -> int:
        return len(self.robots)

    @property
    def map_name(self) -> str:
        return self._map.name if self._map is not None else "custom"

    def run_metrics(self) -> RunMetrics:
        return self.metrics.snapshot(
            map_name=self.map_name,
            completed=self.complete,
            simulation_steps=self.steps,
            available_cells=self.grid.available_cells,
            robot_count=len(self.robots),
            dropped=self.robots.dropped,
        )

    # ------------------------------------------------------------------
    #  Renderer diff
    # ------------------------------------------------------------------
    def pop_robot_state(self, robot_index: int) -> int:
        """
        Packed transition for one robot slot since the previous pop.

        Low three bits hold the :class:`RobotDiff`, the bits above hold the
        index of the robot's last move in the direction table. Returns
        ``-1`` for a slot outside the collection's capacity and ``6`` when
        the last move is not an axis direction.
        """
        if not 0 <= robot_index < self.robots.capacity:
            return INVALID_INDEX
        if robot_index < len(self.robots):
            robot = self.robots[robot_index]
            live, last_move = robot.activity, robot.last_move
        else:
            live, last_move = Activity.IDLE, ZERO

        prev = Activity(int(self._last_popped[robot_index]))
        self._last_popped[robot_index] = live
        diff = _TRANSITIONS.get((prev, live), RobotDiff.INVALID)

        direction = direction_index(last_move)
        if direction is None:
            return NO_DIRECTION
        return int(diff) | (direction << 3)
