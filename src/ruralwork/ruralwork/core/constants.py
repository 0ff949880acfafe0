"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TOTAL_SCORE = 100.0
MIN_TOTAL_SCORE = 0.0

DIMENSION_MAX_SCORE = 20.0
DIMENSION_MIN_SCORE = 0.0

TOP_PERFORMERS_LIMIT = 10
TOP_SCORERS_LIMIT = 5
LOW_SCORERS_LIMIT = 5
LOW_SCORE_THRESHOLD = 95.0

RECENT_USER_DAYS = 7
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

MIN_PASSWORD_LENGTH = 6
PHONE_PATTERN = r"^1[3-9]\d{9}$"

UNASSIGNED_DEPARTMENT = "-"

# (lower bound, label) from highest to lowest; each bucket is [lower, previous lower).
SCORE_BUCKETS = (
    (90.0, "90-100"),
    (80.0, "80-89"),
    (70.0, "70-79"),
    (60.0, "60-69"),
    (float("-inf"), "below 60"),
)
