# robofill/core/metrics.py
import numpy as np

from robofill.protocol import RunMetrics


class MetricsCollector:
    """
    Per-robot counters and the run aggregates derived from them:
      - robot_steps: moves that actually changed a robot's cell (T)
      - robot_time:  steps a robot spent active, moving or not (E)
      - makespan:    step counter of the latest step
    """

    def __init__(self, capacity: int):
        self.capacity = max(0, int(capacity))
        self.robot_steps = np.zeros(self.capacity, dtype=np.int64)
        self.robot_time = np.zeros(self.capacity, dtype=np.int64)
        self.makespan: int = 0
        self.stalled: int = 0

    def reset(self) -> None:
        self.robot_steps.fill(0)
        self.robot_time.fill(0)
        self.makespan = 0
        self.stalled = 0

    def record_active(self, index: int) -> None:
        if 0 <= index < self.capacity:
            self.robot_time[index] += 1

    def record_move(self, index: int) -> None:
        if 0 <= index < self.capacity:
            self.robot_steps[index] += 1

    def record_stall(self) -> None:
        self.stalled += 1

    def finish_step(self, step: int) -> None:
        self.makespan = step

    @property
    def t_total(self) -> int:
        return int(self.robot_steps.sum())

    @property
    def t_max(self) -> int:
        return int(self.robot_steps.max()) if self.capacity else 0

    @property
    def e_total(self) -> int:
        return int(self.robot_time.sum())

    @property
    def e_max(self) -> int:
        return int(self.robot_time.max()) if self.capacity else 0

    def snapshot(
        self,
        *,
        map_name: str,
        completed: bool,
        simulation_steps: int,
        available_cells: int,
        robot_count: int,
        dropped: int = 0,
    ) -> RunMetrics:
        return RunMetrics(
            map_name=map_name,
            completed=completed,
            simulation_steps=simulation_steps,
            makespan=self.makespan,
            available_cells=available_cells,
            robot_count=robot_count,
            t_total=self.t_total,
            t_max=self.t_max,
            e_total=self.e_total,
            e_max=self.e_max,
            stalled=self.stalled,
            dropped=dropped,
        )
