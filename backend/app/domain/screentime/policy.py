"""Policy constants for screen-time reporting."""

from __future__ import annotations

# Week identity: Python weekday() numbers Monday as 0, so Sunday is 6
WEEK_START_WEEKDAY = 6
DAYS_PER_WEEK = 7

MIN_WEEK_HOURS = 0.0
MAX_WEEK_HOURS = 168.0

# Current week plus this many preceding weeks are open for submission
SUBMISSION_WINDOW_PRIOR_WEEKS = 2

# Leaderboard display policy
TOP_N = 3
MIN_DISPLAYED_STREAK = 2

HOURS_PRECISION = 2
