"""
perfcore Global Constants

Centralized location for all library-wide constants and defaults.
"""

from datetime import datetime, timezone


# Timestamp Functions
def get_current_timestamp() -> datetime:
    """Get current timestamp with UTC timezone.

    Returns:
        datetime: Current UTC timestamp

    Note: Use this function instead of a constant to get real-time timestamps.
    """
    return datetime.now(timezone.utc)


# Application Constants
APP_NAME = "perfcore"
APP_VERSION = "1.0.0"

# Cache defaults
DEFAULT_MAX_SIZE_BYTES = 100 * 1024 * 1024  # 100 MiB
DEFAULT_MAX_ENTRIES = 10_000
DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 300.0
DEFAULT_PERSISTENCE_PATH = ".perfcore/cache"

# Eviction batches free roughly one tenth of capacity per step
EVICTION_CAPACITY_FRACTION = 10

# Persistence snapshot layout
SNAPSHOT_VERSION = 1
CACHE_SNAPSHOT_KEY = "performanceCache"
BACKGROUND_TASKS_SNAPSHOT_KEY = "backgroundTasks"

# Lazy loading defaults
DEFAULT_LAZY_BATCH_SIZE = 50
DEFAULT_LAZY_PREFETCH_THRESHOLD = 10
DEFAULT_LAZY_TIMEOUT_SECONDS = 30.0

# Virtualization defaults
DEFAULT_VIRTUAL_ITEM_HEIGHT = 20.0
DEFAULT_VIRTUAL_BUFFER_SIZE = 5
DEFAULT_VIRTUAL_OVERSCAN = 2

# Task progress bounds
TASK_PROGRESS_MIN = 0
TASK_PROGRESS_MAX = 100
