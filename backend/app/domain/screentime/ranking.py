"""Competition ranking for the lowest-usage leaderboard."""

from __future__ import annotations

from typing import List, Optional, Sequence

from app.domain.screentime import policy
from app.domain.screentime.models import LeaderboardRow, MyRank, UserTotal


def _display_streak(weeks: int) -> Optional[int]:
	return weeks if weeks >= policy.MIN_DISPLAYED_STREAK else None


def rank_totals(totals: Sequence[UserTotal]) -> List[LeaderboardRow]:
	"""Rank ascending by hours with shared ranks for ties (1, 1, 3, ...).

	Equal totals are ordered by user id so the output does not depend on the
	order rows came back from the store.
	"""

	ordered = sorted(totals, key=lambda item: (item.total_hours, item.user_id))
	rows: List[LeaderboardRow] = []
	for position, total in enumerate(ordered, start=1):
		if rows and total.total_hours == rows[-1].total_hours:
			rank = rows[-1].rank
		else:
			rank = position
		rows.append(
			LeaderboardRow(
				rank=rank,
				user_id=total.user_id,
				display_name=total.display_name,
				total_hours=total.total_hours,
				is_top_three=rank <= policy.TOP_N,
				streak=_display_streak(total.streak),
			)
		)
	return rows


def find_rank(rows: Sequence[LeaderboardRow], user_id: str) -> Optional[MyRank]:
	"""Look the user up in the full ranking, not a truncated page."""

	for row in rows:
		if row.user_id == user_id:
			return MyRank(rank=row.rank, total_hours=row.total_hours)
	return None
