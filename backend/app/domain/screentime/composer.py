"""Assemble computed pieces into the report shapes returned to callers."""

from __future__ import annotations

from typing import Optional, Sequence

from app.domain.screentime.models import (
	Aggregates,
	DateRange,
	LeaderboardReport,
	LeaderboardRow,
	MetricsReport,
	MyRank,
	Scope,
	Streak,
	WeeklyAggregate,
)


def compose_metrics(
	scope: Scope,
	date_range: DateRange,
	series: Sequence[WeeklyAggregate],
	aggregates: Aggregates,
	streak: Optional[Streak] = None,
) -> MetricsReport:
	# A zero-length streak is omitted rather than reported as 0
	if streak is not None and streak.weeks == 0:
		streak = None
	return MetricsReport(
		scope=scope,
		range=date_range,
		series=list(series),
		aggregates=aggregates,
		streak=streak,
	)


def compose_leaderboard(
	scope: Scope,
	date_range: DateRange,
	ranked: Sequence[LeaderboardRow],
	limit: int,
	my_rank: Optional[MyRank] = None,
) -> LeaderboardReport:
	return LeaderboardReport(
		scope=scope,
		range=date_range,
		rows=list(ranked[: max(limit, 0)]),
		my_rank=my_rank,
	)
