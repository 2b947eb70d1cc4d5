"""Domain models for weekly screen-time reporting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Mapping, Optional


class Scope(str, Enum):
	"""Granularity of a reporting period."""

	WEEK = "week"
	MONTH = "month"
	YEAR = "year"


@dataclass(frozen=True, slots=True)
class DateRange:
	"""Inclusive calendar range."""

	start: date
	end: date

	def __contains__(self, value: date) -> bool:
		return self.start <= value <= self.end


@dataclass(frozen=True, slots=True)
class WeekEntry:
	"""One user's reported hours for one Sunday-start week."""

	user_id: str
	week_start: date
	total_hours: float

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "WeekEntry":
		"""Build an entry from a store row (asyncpg Record or dict)."""

		return cls(
			user_id=str(record["user_id"]),
			week_start=record["week_start"],
			total_hours=float(record["total_hours"]),
		)


@dataclass(frozen=True, slots=True)
class WeeklyAggregate:
	"""Hours for a single week: a user's raw value or the all-user mean."""

	week_start: date
	total_hours: float


@dataclass(frozen=True, slots=True)
class Aggregates:
	total_hours: float
	avg_per_week: float

	@classmethod
	def empty(cls) -> "Aggregates":
		return cls(total_hours=0.0, avg_per_week=0.0)


@dataclass(frozen=True, slots=True)
class Streak:
	"""Unbroken run of consecutive weeks ending at the latest submission."""

	weeks: int
	current_start: Optional[date]

	@classmethod
	def none(cls) -> "Streak":
		return cls(weeks=0, current_start=None)


@dataclass(slots=True)
class UserTotal:
	"""Per-user fold over the entries of a range."""

	user_id: str
	display_name: str
	total_hours: float
	streak: int = 0


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
	"""Ranked user total."""

	rank: int
	user_id: str
	display_name: str
	total_hours: float
	is_top_three: bool
	streak: Optional[int] = None


@dataclass(frozen=True, slots=True)
class MetricsReport:
	scope: Scope
	range: DateRange
	series: list[WeeklyAggregate]
	aggregates: Aggregates
	streak: Optional[Streak] = None


@dataclass(frozen=True, slots=True)
class MyRank:
	rank: int
	total_hours: float


@dataclass(frozen=True, slots=True)
class LeaderboardReport:
	scope: Scope
	range: DateRange
	rows: list[LeaderboardRow]
	my_rank: Optional[MyRank] = None
