import os
import logging
from logging.handlers import RotatingFileHandler

import bittensor as bt
import pandas as pd

from robofill.protocol import RunMetrics

EVENTS_LEVEL_NUM = 38
DEFAULT_LOG_BACKUP_COUNT = 10
EVENTS_FILE = "events.log"


def format_run_event(metrics: RunMetrics, *, seed: int, p: int) -> str:
    """One ``key=value`` line: the run's seed and probability, then every metric."""
    fields = [f"seed={seed}", f"p={p}"]
    fields += [f"{name}={getattr(metrics, name)}" for name in RunMetrics.__dataclass_fields__]
    return " ".join(fields)


def setup_events_logger(full_path, events_retention_size):
    """Logger writing one ``EVENT`` line per finished run to ``events.log``."""
    logging.addLevelName(EVENTS_LEVEL_NUM, "EVENT")

    logger = logging.getLogger("robofill.event")
    logger.setLevel(EVENTS_LEVEL_NUM)

    def event(self, message, *args, **kws):
        if self.isEnabledFor(EVENTS_LEVEL_NUM):
            self._log(EVENTS_LEVEL_NUM, message, args, **kws)

    def event_run(self, metrics, seed, p):
        self.event(format_run_event(metrics, seed=seed, p=p))

    logging.Logger.event = event
    logging.Logger.event_run = event_run

    os.makedirs(full_path, exist_ok=True)
    log_file = os.path.abspath(os.path.join(full_path, EVENTS_FILE))
    for handler in logger.handlers:
        if getattr(handler, "baseFilename", None) == log_file:
            return logger

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=events_retention_size,
        backupCount=DEFAULT_LOG_BACKUP_COUNT,
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(EVENTS_LEVEL_NUM)
    logger.addHandler(file_handler)

    return logger


class ColoredLogger:
    """ANSI-coloured wrappers around the bt.logging methods."""

    BLUE = "blue"
    YELLOW = "yellow"
    RED = "red"
    GREEN = "green"
    CYAN = "cyan"

    _COLORS = {
        "blue": "\033[94m",
        "yellow": "\033[93m",
        "red": "\033[91m",
        "green": "\033[92m",
        "cyan": "\033[96m",
        "reset": "\033[0m",
    }

    @staticmethod
    def _colored_msg(message: str, color: str) -> str:
        if color not in ColoredLogger._COLORS:
            return message
        return (
            f"{ColoredLogger._COLORS[color]}{message}{ColoredLogger._COLORS['reset']}"
        )

    @staticmethod
    def info(message: str, color: str = "blue") -> None:
        bt.logging.info(ColoredLogger._colored_msg(message, color))

    @staticmethod
    def warning(message: str, color: str = "yellow") -> None:
        bt.logging.warning(ColoredLogger._colored_msg(message, color))

    @staticmethod
    def error(message: str, color: str = "red") -> None:
        bt.logging.error(ColoredLogger._colored_msg(message, color))

    @staticmethod
    def success(message: str, color: str = "green") -> None:
        bt.logging.success(ColoredLogger._colored_msg(message, color))

    # ------------------------------------------------------------------
    #  Run reporting
    # ------------------------------------------------------------------
    @staticmethod
    def run_line(metrics: RunMetrics, run: int, runs: int) -> str:
        return (
            f"Run {run:3d}/{runs} : map={metrics.map_name} completed={metrics.completed} "
            f"makespan={metrics.makespan} T={metrics.t_total}/{metrics.t_max} "
            f"E={metrics.e_total}/{metrics.e_max} robots={metrics.robot_count}"
        )

    @staticmethod
    def run(metrics: RunMetrics, run: int, runs: int) -> None:
        """Per-run line, green when the run completed and yellow when it was capped."""
        color = ColoredLogger.GREEN if metrics.completed else ColoredLogger.YELLOW
        bt.logging.info(ColoredLogger._colored_msg(ColoredLogger.run_line(metrics, run, runs), color))

    @staticmethod
    def summary_text(table: pd.DataFrame, runs: int, completed: int) -> str:
        return (
            f"\n═══════════ Simulation metrics ({runs} runs, "
            f"{completed} completed) ═══════════\n"
            + table.to_string(float_format=lambda x: f"{x:10.2f}")
        )

    @staticmethod
    def summary(table: pd.DataFrame, runs: int, completed: int) -> None:
        ColoredLogger.info(ColoredLogger.summary_text(table, runs, completed))
        if completed == runs:
            ColoredLogger.success("All runs completed")
        else:
            ColoredLogger.warning(f"{runs - completed} runs hit the step cap")
