"""Group weekly entries into chart series and summary aggregates."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Sequence, Tuple

from app.domain.screentime import policy
from app.domain.screentime.models import Aggregates, UserTotal, WeekEntry, WeeklyAggregate


def round_hours(value: float) -> float:
	return round(value, policy.HOURS_PRECISION)


def aggregate_user(entries: Sequence[WeekEntry]) -> Tuple[List[WeeklyAggregate], Aggregates]:
	"""Series and totals for one user's entries, already ordered by week."""

	series = [WeeklyAggregate(week_start=entry.week_start, total_hours=round_hours(entry.total_hours)) for entry in entries]
	if not entries:
		return series, Aggregates.empty()
	total = sum(entry.total_hours for entry in entries)
	return series, Aggregates(
		total_hours=round_hours(total),
		avg_per_week=round_hours(total / len(entries)),
	)


def aggregate_population(entries: Iterable[WeekEntry]) -> Tuple[List[WeeklyAggregate], Aggregates]:
	"""Per-week means across every submitter plus headline aggregates.

	Weeks nobody submitted for never appear in the series. The headline total is
	the sum of all hours divided by the number of distinct users seen.
	"""

	by_week: Dict[date, List[float]] = defaultdict(list)
	users: set[str] = set()
	grand_total = 0.0
	for entry in entries:
		by_week[entry.week_start].append(entry.total_hours)
		users.add(entry.user_id)
		grand_total += entry.total_hours

	series = [
		WeeklyAggregate(week_start=week, total_hours=round_hours(sum(values) / len(values)))
		for week, values in sorted(by_week.items())
	]
	if not series:
		return series, Aggregates.empty()
	avg_per_week = sum(point.total_hours for point in series) / len(series)
	return series, Aggregates(
		total_hours=round_hours(grand_total / max(len(users), 1)),
		avg_per_week=round_hours(avg_per_week),
	)


def total_by_user(rows: Iterable[Tuple[str, str, float]]) -> List[UserTotal]:
	"""Fold ``(user_id, display_name, hours)`` rows into one total per user.

	Output keeps first-seen user order.
	"""

	totals: Dict[str, UserTotal] = {}
	for user_id, display_name, hours in rows:
		current = totals.get(user_id)
		if current is None:
			totals[user_id] = UserTotal(user_id=user_id, display_name=display_name, total_hours=float(hours))
		else:
			current.total_hours += float(hours)
	for total in totals.values():
		total.total_hours = round_hours(total.total_hours)
	return list(totals.values())
