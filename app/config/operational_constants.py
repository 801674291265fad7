"""
Operational constants for the rewards service.

Technical/operational constants used across the application.
Includes lock timeouts, retry configurations and task time limits.
"""

# =============================================================================
# LOCK TIMEOUTS (seconds)
# =============================================================================
# Used by distributed_lock.py for Redis locks

# Short operations (single commission distribution)
LOCK_TIMEOUT_SHORT = 30

# Medium operations (per-user settlement)
LOCK_TIMEOUT_MEDIUM = 60

# Long operations (full daily settlement)
LOCK_TIMEOUT_LONG = 300

# Very long operations (settlement of large networks)
LOCK_TIMEOUT_EXTENDED = 600


# =============================================================================
# BLOCKING TIMEOUTS (seconds)
# =============================================================================
# How long to wait for lock acquisition

BLOCKING_TIMEOUT_SHORT = 3.0
BLOCKING_TIMEOUT_DEFAULT = 5.0
BLOCKING_TIMEOUT_LONG = 10.0


# =============================================================================
# RETRY CONFIGURATIONS
# =============================================================================

# Default retry count for most operations
DEFAULT_MAX_RETRIES = 3

# Retry backoff bounds (milliseconds)
RETRY_MIN_BACKOFF_MS = 1_000
RETRY_MAX_BACKOFF_MS = 60_000


# =============================================================================
# DRAMATIQ TASK TIME LIMITS (milliseconds)
# =============================================================================

# Short tasks (1 minute) - single commission distribution
DRAMATIQ_TIME_LIMIT_SHORT = 60_000

# Medium tasks (2 minutes)
DRAMATIQ_TIME_LIMIT_MEDIUM = 120_000

# Standard tasks (5 minutes) - most background jobs
DRAMATIQ_TIME_LIMIT_STANDARD = 300_000

# Long tasks (10 minutes) - daily settlement
DRAMATIQ_TIME_LIMIT_LONG = 600_000


# =============================================================================
# PAGINATION LIMITS
# =============================================================================

# Default page size for most lists
DEFAULT_PAGE_SIZE = 10

# Commission history page size
COMMISSION_HISTORY_PAGE_SIZE = 20

# Maximum page size for batch operations
MAX_PAGE_SIZE = 100
