"""Service layer for screen-time entries, metrics and the leaderboard."""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import List, Optional

from redis.exceptions import RedisError

from app.domain.screentime import periods, policy
from app.domain.screentime.aggregation import aggregate_population, aggregate_user, total_by_user
from app.domain.screentime.composer import compose_leaderboard, compose_metrics
from app.domain.screentime.errors import (
	EntryRateLimitExceeded,
	InvalidEntry,
	InvalidReference,
	RateLimitUnavailable,
	SubmissionWindowClosed,
)
from app.domain.screentime.models import DateRange, LeaderboardReport, MetricsReport, Scope, WeekEntry
from app.domain.screentime.ranking import find_rank, rank_totals
from app.domain.screentime.store import EntryStore, PostgresEntryStore
from app.domain.screentime.streaks import current_streak
from app.infra import rate_limit
from app.obs import metrics as obs_metrics
from app.settings import settings

LOGGER = logging.getLogger(__name__)

_ALL_TIME = DateRange(start=date(1, 1, 1), end=date(9999, 12, 31))


def clamp_limit(limit: Optional[int]) -> int:
	if limit is None:
		limit = settings.leaderboard_default_limit
	return max(1, min(int(limit), settings.leaderboard_max_limit))


class ScreenTimeService:
	"""Coordinates the entry store with period, aggregation and ranking logic."""

	def __init__(self, store: Optional[EntryStore] = None) -> None:
		self._store: EntryStore = store or PostgresEntryStore()

	async def get_my_metrics(self, *, user_id: str, scope: Scope | str, reference: Optional[str]) -> MetricsReport:
		scope = periods.parse_scope(scope)
		date_range = periods.resolve_range(scope, reference)
		entries = await self._store.fetch_entries(date_range, user_id=user_id)
		# Streaks span earlier periods, so they always use the full history
		history = await self._store.fetch_full_history(user_id)

		series, aggregates = aggregate_user(entries)
		streak = current_streak(history)
		report = compose_metrics(scope, date_range, series, aggregates, streak)
		obs_metrics.report_served("me", scope.value)
		LOGGER.info(
			"metrics computed",
			extra={
				"view": "me",
				"scope": scope.value,
				"points": len(series),
				"total_hours": aggregates.total_hours,
				"streak_weeks": streak.weeks,
			},
		)
		return report

	async def get_all_metrics(self, *, scope: Scope | str, reference: Optional[str]) -> MetricsReport:
		scope = periods.parse_scope(scope)
		date_range = periods.resolve_range(scope, reference)
		entries = await self._store.fetch_entries(date_range)

		series, aggregates = aggregate_population(entries)
		report = compose_metrics(scope, date_range, series, aggregates)
		obs_metrics.report_served("all", scope.value)
		LOGGER.info(
			"metrics computed",
			extra={"view": "all", "scope": scope.value, "points": len(series)},
		)
		return report

	async def get_leaderboard(
		self,
		*,
		user_id: str,
		scope: Scope | str,
		reference: Optional[str],
		limit: Optional[int] = None,
	) -> LeaderboardReport:
		scope = periods.parse_scope(scope)
		date_range = periods.resolve_range(scope, reference)
		limit = clamp_limit(limit)

		rows = await self._store.fetch_entries_with_display_name(date_range)
		totals = total_by_user(rows)
		histories = await self._store.fetch_histories([total.user_id for total in totals])
		for total in totals:
			total.streak = current_streak(histories.get(total.user_id, [])).weeks

		ranked = rank_totals(totals)
		report = compose_leaderboard(scope, date_range, ranked, limit, find_rank(ranked, user_id))
		obs_metrics.report_served("leaderboard", scope.value)
		obs_metrics.observe_leaderboard_size(len(ranked))
		LOGGER.info(
			"leaderboard computed",
			extra={"scope": scope.value, "ranked": len(ranked), "returned": len(report.rows)},
		)
		return report

	async def submit_entry(
		self,
		*,
		user_id: str,
		week_start_local: str,
		total_hours: float,
		today: Optional[date] = None,
	) -> WeekEntry:
		"""Create or replace the caller's entry for one week."""

		try:
			week_start = periods.parse_day(week_start_local, field="weekStartLocal")
		except InvalidReference as exc:
			raise InvalidEntry(str(exc), field="weekStartLocal") from None
		if not periods.is_week_start(week_start):
			raise InvalidEntry("week start must be a Sunday", field="weekStartLocal")
		hours = float(total_hours)
		if not math.isfinite(hours) or not policy.MIN_WEEK_HOURS <= hours <= policy.MAX_WEEK_HOURS:
			raise InvalidEntry("totalHours must be between 0 and 168", field="totalHours")
		if week_start not in periods.allowed_weeks(today):
			raise SubmissionWindowClosed(
				"week must be the current week or one of the two preceding weeks",
				field="weekStartLocal",
			)
		try:
			budget = await rate_limit.consume("entry_submit", user_id, limit=settings.entry_submit_per_minute)
		except RedisError as exc:
			obs_metrics.upstream_failure("rate_limit")
			LOGGER.warning("rate limit check failed", extra={"error": str(exc)})
			raise RateLimitUnavailable("submission budget is unavailable") from exc
		if not budget.allowed:
			LOGGER.warning("entry submission throttled", extra={"retry_after": budget.retry_after})
			raise EntryRateLimitExceeded(retry_after=budget.retry_after)

		entry = await self._store.upsert_entry(user_id, week_start, hours)
		obs_metrics.entry_submitted()
		LOGGER.info(
			"screen entry upserted",
			extra={"week_start": week_start.isoformat(), "total_hours": entry.total_hours},
		)
		return entry

	async def list_my_entries(self, *, user_id: str) -> List[WeekEntry]:
		"""Every entry the user has submitted, newest first."""

		entries = await self._store.fetch_entries(_ALL_TIME, user_id=user_id)
		return list(reversed(entries))
