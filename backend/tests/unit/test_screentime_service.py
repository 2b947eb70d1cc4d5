import math
from datetime import date

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.domain.screentime.errors import (
	EntryRateLimitExceeded,
	InvalidEntry,
	InvalidScope,
	MissingReference,
	RateLimitUnavailable,
	SubmissionWindowClosed,
)
from app.domain.screentime.models import Scope, Streak
from app.domain.screentime.service import ScreenTimeService, clamp_limit
from app.infra import rate_limit
from app.settings import settings

TODAY = date(2024, 3, 13)


@pytest.mark.asyncio
async def test_my_metrics_week(memory_store):
	memory_store.add("alice", "2024-03-03", 10.0)
	memory_store.add("alice", "2024-02-25", 6.0)
	memory_store.add("bob", "2024-03-03", 4.0)
	svc = ScreenTimeService(store=memory_store)

	report = await svc.get_my_metrics(user_id="alice", scope="week", reference="2024-03-03")

	assert report.scope is Scope.WEEK
	assert [point.total_hours for point in report.series] == [10.0]
	assert report.aggregates.total_hours == 10.0
	# streak uses the full history, not only the requested week
	assert report.streak == Streak(weeks=2, current_start=date(2024, 2, 25))


@pytest.mark.asyncio
async def test_my_metrics_month_aggregates(memory_store):
	memory_store.add("alice", "2024-03-03", 10.0)
	memory_store.add("alice", "2024-03-10", 5.0)
	svc = ScreenTimeService(store=memory_store)

	report = await svc.get_my_metrics(user_id="alice", scope=Scope.MONTH, reference="2024-03")

	assert report.aggregates.total_hours == 15.0
	assert report.aggregates.avg_per_week == 7.5


@pytest.mark.asyncio
async def test_my_metrics_without_entries_has_no_streak(memory_store):
	svc = ScreenTimeService(store=memory_store)

	report = await svc.get_my_metrics(user_id="nobody", scope="year", reference="2024")

	assert report.series == []
	assert report.aggregates.total_hours == 0.0
	assert report.streak is None


@pytest.mark.asyncio
async def test_invalid_scope_fails_before_touching_store(memory_store):
	svc = ScreenTimeService(store=memory_store)

	with pytest.raises(InvalidScope):
		await svc.get_all_metrics(scope="fortnight", reference="2024-03-03")
	with pytest.raises(MissingReference):
		await svc.get_all_metrics(scope="month", reference=None)
	assert memory_store.calls == []


@pytest.mark.asyncio
async def test_all_metrics_has_no_streak(memory_store):
	memory_store.add("alice", "2024-03-03", 10.0)
	memory_store.add("bob", "2024-03-03", 20.0)
	svc = ScreenTimeService(store=memory_store)

	report = await svc.get_all_metrics(scope="week", reference="2024-03-03")

	assert report.series[0].total_hours == 15.0
	assert report.aggregates.total_hours == 15.0
	assert report.streak is None


@pytest.mark.asyncio
async def test_leaderboard_ranks_ties_and_reports_my_rank(memory_store):
	memory_store.add("alice", "2024-03-03", 5.0)
	memory_store.add("bob", "2024-03-03", 5.0)
	memory_store.add("carol", "2024-03-03", 8.0)
	memory_store.add("carol", "2024-02-25", 1.0)
	svc = ScreenTimeService(store=memory_store)

	report = await svc.get_leaderboard(user_id="carol", scope="week", reference="2024-03-03", limit=2)

	assert [(row.display_name, row.rank) for row in report.rows] == [("Alice", 1), ("Bob", 1)]
	assert all(row.is_top_three for row in report.rows)
	assert report.my_rank.rank == 3
	assert report.my_rank.total_hours == 8.0


@pytest.mark.asyncio
async def test_leaderboard_page_of_one_still_reports_my_rank(memory_store):
	memory_store.add("alice", "2024-03-03", 5.0)
	memory_store.add("bob", "2024-03-03", 5.0)
	memory_store.add("carol", "2024-03-03", 8.0)
	svc = ScreenTimeService(store=memory_store)

	report = await svc.get_leaderboard(user_id="carol", scope="week", reference="2024-03-03", limit=1)

	assert len(report.rows) == 1
	assert report.my_rank.rank == 3


@pytest.mark.asyncio
async def test_leaderboard_streaks_and_fallback_names(memory_store):
	memory_store.add("dave", "2024-03-03", 3.0)
	memory_store.add("dave", "2024-02-25", 3.0)
	memory_store.add("alice", "2024-03-03", 4.0)
	svc = ScreenTimeService(store=memory_store)

	report = await svc.get_leaderboard(user_id="ghost", scope="week", reference="2024-03-03")

	first, second = report.rows
	assert first.display_name == "dave"
	assert first.streak == 2
	assert second.streak is None
	assert report.my_rank is None


def test_clamp_limit():
	assert clamp_limit(None) == settings.leaderboard_default_limit
	assert clamp_limit(10_000) == settings.leaderboard_max_limit
	assert clamp_limit(0) == 1


@pytest.mark.asyncio
async def test_submit_entry_replaces_existing_week(memory_store):
	svc = ScreenTimeService(store=memory_store)

	await svc.submit_entry(user_id="alice", week_start_local="2024-03-10", total_hours=12.5, today=TODAY)
	entry = await svc.submit_entry(user_id="alice", week_start_local="2024-03-10", total_hours=9.0, today=TODAY)

	assert entry.total_hours == 9.0
	assert memory_store.rows == {("alice", date(2024, 3, 10)): 9.0}


@pytest.mark.asyncio
@pytest.mark.parametrize("hours", [0, 168, 0.0, 167.99])
async def test_submit_entry_accepts_boundaries(memory_store, hours):
	svc = ScreenTimeService(store=memory_store)

	entry = await svc.submit_entry(user_id="alice", week_start_local="2024-03-03", total_hours=hours, today=TODAY)

	assert entry.total_hours == float(hours)


@pytest.mark.asyncio
@pytest.mark.parametrize("hours", [-0.01, 168.01, math.nan, math.inf])
async def test_submit_entry_rejects_out_of_range_hours(memory_store, hours):
	svc = ScreenTimeService(store=memory_store)

	with pytest.raises(InvalidEntry) as excinfo:
		await svc.submit_entry(user_id="alice", week_start_local="2024-03-03", total_hours=hours, today=TODAY)
	assert excinfo.value.field == "totalHours"
	assert memory_store.rows == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("week", ["2024-03-04", "03/03/2024", "2024-02-31"])
async def test_submit_entry_rejects_bad_week_start(memory_store, week):
	svc = ScreenTimeService(store=memory_store)

	with pytest.raises(InvalidEntry) as excinfo:
		await svc.submit_entry(user_id="alice", week_start_local=week, total_hours=1.0, today=TODAY)
	assert excinfo.value.field == "weekStartLocal"


@pytest.mark.asyncio
@pytest.mark.parametrize("week", ["2024-02-18", "2024-03-17"])
async def test_submit_entry_outside_window(memory_store, week):
	svc = ScreenTimeService(store=memory_store)

	with pytest.raises(SubmissionWindowClosed):
		await svc.submit_entry(user_id="alice", week_start_local=week, total_hours=1.0, today=TODAY)


@pytest.mark.asyncio
async def test_submit_entry_rate_limited(memory_store, monkeypatch):
	monkeypatch.setattr(settings, "entry_submit_per_minute", 2)
	svc = ScreenTimeService(store=memory_store)

	for _ in range(2):
		await svc.submit_entry(user_id="alice", week_start_local="2024-03-10", total_hours=1.0, today=TODAY)
	with pytest.raises(EntryRateLimitExceeded):
		await svc.submit_entry(user_id="alice", week_start_local="2024-03-10", total_hours=2.0, today=TODAY)
	assert memory_store.rows[("alice", date(2024, 3, 10))] == 1.0


@pytest.mark.asyncio
async def test_list_my_entries_newest_first(memory_store):
	memory_store.add("alice", "2024-02-25", 1.0)
	memory_store.add("alice", "2024-03-10", 3.0)
	memory_store.add("bob", "2024-03-03", 2.0)
	svc = ScreenTimeService(store=memory_store)

	entries = await svc.list_my_entries(user_id="alice")

	assert [entry.week_start for entry in entries] == [date(2024, 3, 10), date(2024, 2, 25)]


@pytest.mark.asyncio
async def test_submit_entry_when_redis_is_down(memory_store, monkeypatch):
	async def unreachable(*args, **kwargs):
		raise RedisConnectionError("connection refused")
	monkeypatch.setattr(rate_limit, "consume", unreachable)
	svc = ScreenTimeService(store=memory_store)

	with pytest.raises(RateLimitUnavailable):
		await svc.submit_entry(user_id="alice", week_start_local="2024-03-10", total_hours=1.0, today=TODAY)
	assert memory_store.rows == {}
