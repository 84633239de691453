"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MIN_SESSION_GAP_MINUTES = 15
TIMESTAMP_MAX_ATTEMPTS = 10
TIMESTAMP_OFFSET_SECONDS = 1

OVERTIME_THRESHOLD_HOURS = 8
DEFAULT_COMPLIANCE_CEILING = 100.0

DEFAULT_CACHE_SECONDS = 30
DEFAULT_AUDIT_FLUSH_THRESHOLD = 10
DEFAULT_HISTORY_LIMIT = 30
