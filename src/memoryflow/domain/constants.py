"""Centralized constants for memoryflow.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
DAY_MS = 24 * 60 * 60 * 1000

# ---------- FSRS ----------
# Standard FSRS v4.5 weights
FSRS_WEIGHTS: tuple[float, ...] = (
    0.40255, 1.18385, 3.173, 15.69105, 7.19605, 0.5345, 1.4604,
    0.0046, 1.54575, 0.1192, 1.01925, 1.9395, 0.41, 0.29605, 2.2698,
    0.2315, 2.9898, 0.51655, 0.6621,
)
DECAY = -0.5
FACTOR = 0.9  # Requested retention
DIFFICULTY_MIN = 1.0
DIFFICULTY_MAX = 10.0
MIN_INTERVAL_DAYS = 1
MAX_INTERVAL_DAYS = 36500
STATE_PRECISION = 4  # Decimal places kept on S and D

# ---------- Projection ----------
PROJECTION_MAX_STEPS = 365
DEFAULT_HORIZON_DAYS = 14

# ---------- Tree ----------
ROOT_ID = "root"
ROOT_TITLE = "Root"
OTHER_SUBJECT = "Other"

# ---------- Late-night rule ----------
LATE_NIGHT_CUTOFF_HOUR = 3
