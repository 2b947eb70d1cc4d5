"""Pydantic schemas for screen-time entry, metrics and leaderboard APIs."""

from __future__ import annotations

import datetime as dt
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.screentime.models import (
	DateRange,
	LeaderboardReport,
	LeaderboardRow,
	MetricsReport,
	Scope,
	WeekEntry,
)


class _CamelModel(BaseModel):
	model_config = ConfigDict(populate_by_name=True)


class RangeSchema(_CamelModel):
	start: date
	end: date

	@classmethod
	def from_range(cls, value: DateRange) -> "RangeSchema":
		return cls(start=value.start, end=value.end)


class SeriesPointSchema(_CamelModel):
	date: dt.date
	total_hours: float = Field(..., alias="totalHours")


class AggregatesSchema(_CamelModel):
	total_hours: float = Field(0.0, alias="totalHours")
	avg_per_week: float = Field(0.0, alias="avgPerWeek")


class StreakSchema(_CamelModel):
	weeks: int = Field(..., ge=1)
	current_start: date = Field(..., alias="currentStart")


class MetricsResponseSchema(_CamelModel):
	scope: Scope
	range: RangeSchema
	series: list[SeriesPointSchema]
	aggregates: AggregatesSchema
	streak: Optional[StreakSchema] = None

	@classmethod
	def from_report(cls, report: MetricsReport) -> "MetricsResponseSchema":
		streak = None
		if report.streak is not None and report.streak.current_start is not None:
			streak = StreakSchema(weeks=report.streak.weeks, current_start=report.streak.current_start)
		return cls(
			scope=report.scope,
			range=RangeSchema.from_range(report.range),
			series=[SeriesPointSchema(date=point.week_start, total_hours=point.total_hours) for point in report.series],
			aggregates=AggregatesSchema(
				total_hours=report.aggregates.total_hours,
				avg_per_week=report.aggregates.avg_per_week,
			),
			streak=streak,
		)


class LeaderboardUserSchema(_CamelModel):
	id: str
	name: str


class LeaderboardRowSchema(_CamelModel):
	rank: int = Field(..., ge=1)
	user: LeaderboardUserSchema
	total_hours: float = Field(..., alias="totalHours")
	top3: bool
	streak: Optional[int] = None

	@classmethod
	def from_row(cls, row: LeaderboardRow) -> "LeaderboardRowSchema":
		return cls(
			rank=row.rank,
			user=LeaderboardUserSchema(id=row.user_id, name=row.display_name),
			total_hours=row.total_hours,
			top3=row.is_top_three,
			streak=row.streak,
		)


class MyRankSchema(_CamelModel):
	rank: int = Field(..., ge=1)
	total_hours: float = Field(..., alias="totalHours")


class LeaderboardResponseSchema(_CamelModel):
	scope: Scope
	range: RangeSchema
	rows: list[LeaderboardRowSchema]
	my_rank: Optional[MyRankSchema] = Field(default=None, alias="myRank")

	@classmethod
	def from_report(cls, report: LeaderboardReport) -> "LeaderboardResponseSchema":
		my_rank = None
		if report.my_rank is not None:
			my_rank = MyRankSchema(rank=report.my_rank.rank, total_hours=report.my_rank.total_hours)
		return cls(
			scope=report.scope,
			range=RangeSchema.from_range(report.range),
			rows=[LeaderboardRowSchema.from_row(row) for row in report.rows],
			my_rank=my_rank,
		)


class SubmitEntryRequest(_CamelModel):
	week_start_local: str = Field(..., alias="weekStartLocal", description="Sunday in YYYY-MM-DD")
	total_hours: float = Field(..., alias="totalHours")


class EntrySchema(_CamelModel):
	user_id: str = Field(..., alias="userId")
	week_start: date = Field(..., alias="weekStart")
	total_hours: float = Field(..., alias="totalHours")

	@classmethod
	def from_entry(cls, entry: WeekEntry) -> "EntrySchema":
		return cls(user_id=entry.user_id, week_start=entry.week_start, total_hours=entry.total_hours)


class SubmitEntryResponse(_CamelModel):
	success: bool = True
	data: EntrySchema


class AllowedWeeksResponse(_CamelModel):
	weeks: list[date]
	labels: list[str] = Field(default_factory=list)


class CurrentPeriodResponse(_CamelModel):
	scope: Scope
	reference: str
	range: RangeSchema
