"""Consecutive-week streak detection."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

from app.domain.screentime import policy
from app.domain.screentime.models import Streak

_ONE_WEEK = timedelta(days=policy.DAYS_PER_WEEK)


def current_streak(history: Sequence[date]) -> Streak:
	"""Length of the unbroken weekly run ending at the most recent week.

	``history`` is the user's complete list of week starts, newest first. Walking
	stops at the first step that is not exactly seven days older.
	"""

	if not history:
		return Streak.none()
	weeks = 1
	run_start = history[0]
	for newer, older in zip(history, history[1:]):
		if older != newer - _ONE_WEEK:
			break
		weeks += 1
		run_start = older
	return Streak(weeks=weeks, current_start=run_start)
