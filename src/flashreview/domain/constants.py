"""Centralized constants for the review engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Interval ladder (days) ----------
INITIAL_INTERVAL = 1
SECOND_INTERVAL = 3
PLATEAU_INTERVAL = 7

# ---------- Struggling policy defaults ----------
STRUGGLING_CONSECUTIVE_FAILURES = 3
STRUGGLING_MIN_ATTEMPTS = 5
STRUGGLING_FAILURE_RATIO = 0.5
STRUGGLING_RECOVERY_STREAK = 1

# ---------- Sessions ----------
DEFAULT_SESSION_LIMIT = 20
SESSION_TTL_SECONDS = 3600
SESSION_ID_PREFIX = "review"
