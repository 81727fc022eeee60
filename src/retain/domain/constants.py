"""Centralized constants for the retain scheduling engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Quality scale ----------
QUALITY_MIN = 0
QUALITY_MAX = 5
PASS_THRESHOLD = 3  # quality >= 3 counts as a pass

# ---------- Ease factor ----------
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 3.0
DEFAULT_EASE_FACTOR = 2.5
FAILURE_EASE_PENALTY = 0.2

# ---------- Intervals (days) ----------
DEFAULT_INTERVAL = 1
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6

# ---------- Response time ----------
DEFAULT_REFERENCE_RESPONSE_MS = {
    "Beginner": 5000,
    "Intermediate": 8000,
    "Advanced": 12000,
}
FAST_INTERVAL_RATIO = 0.5
SLOW_INTERVAL_RATIO = 2.0
FAST_INTERVAL_MODIFIER = 1.1
SLOW_INTERVAL_MODIFIER = 0.9

FAST_CONFIDENCE_RATIO = 0.8
SLOW_CONFIDENCE_RATIO = 1.5
FAST_CONFIDENCE_MODIFIER = 1.1
SLOW_CONFIDENCE_MODIFIER = 0.9

# ---------- Ranking ----------
RECENCY_WINDOW_DAYS = 30.0
DIFFICULTY_RANK = {
    "Expert": 0,
    "Advanced": 0,
    "Intermediate": 1,
    "Beginner": 2,
}
DEFAULT_DIFFICULTY_RANK = 1

# ---------- Session composition ----------
DEFAULT_MAX_CARDS = 20
DUE_FRACTION = 0.4
NEW_FRACTION = 0.3
MIN_RECOMMENDED_SESSION = 5
MAX_RECOMMENDED_SESSION = 20

# ---------- Result cache ----------
CACHE_TTL_SECONDS = 60.0
CACHE_MAX_ENTRIES = 128

# ---------- Store ----------
STORE_TIMEOUT = 5.0
