# =============================================================================
# ROBOFILL CONSTANTS
# =============================================================================
# Centralized constants for the self-assembly simulator. This file contains
# grid limits, robot policy parameters, run limits and catalog settings used
# throughout the package.
# =============================================================================

# =============================================================================
# GRID
# =============================================================================

MAX_GRID_SIZE = 20                      # Maximum cells per axis
UNREACHABLE = 2**31 - 1                 # Distance sentinel for cells BFS never visits
DEMO_GRID_SIZE = (3, 4, 4)              # Size of the built-in demo room
DEMO_DOOR = (2, 1, 1)                   # Door of the built-in demo room

# =============================================================================
# ROBOT POLICY
# =============================================================================

SETTLED_WALL_THRESHOLD = 5              # Settle age past which a robot counts as old wall
WALL_SETTLED_FOR = SETTLED_WALL_THRESHOLD + 1  # settled_for given to robots walled in by set_cell
DEFAULT_PREFERRED_DIRECTION = (0, 1, 0) # Preferred direction ("kulso_irany") given at spawn

# =============================================================================
# SIMULATION RUNS
# =============================================================================

DEFAULT_ACTIVE_PROBABILITY = 100        # Chance (percent) that an active robot acts in a step
MIN_ACTIVE_PROBABILITY = 0
MAX_ACTIVE_PROBABILITY = 100
MAX_STEPS_FACTOR = 50                   # Safety cap for a run = factor × grid volume
DEFAULT_RUNS = 1                        # Runs per batch
DEFAULT_SEED = None                     # None → fresh random seed per batch

# =============================================================================
# MAP CATALOG
# =============================================================================

MAP_FILE_SUFFIX = ".map"                # msgpack-encoded MapSpec files
MAP_FORMAT_VERSION = "1"
PILLARS_SEED = 7                        # Seed for the built-in "pillars" map
PILLARS_DENSITY = 0.15                  # Fraction of interior columns turned into pillars

# =============================================================================
# LOGGING
# =============================================================================

EVENTS_RETENTION_SIZE = 5 * 1024 * 1024 # Rotate events.log after 5 MiB
