"""Postgres-backed access to weekly screen-time entries."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Dict, List, Optional, Protocol, Sequence, Tuple

import asyncpg

from app.domain.screentime.errors import UpstreamFetchFailure
from app.domain.screentime.models import DateRange, WeekEntry
from app.infra.postgres import get_pool
from app.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, asyncio.TimeoutError, OSError)


class EntryStore(Protocol):
	async def fetch_entries(self, date_range: DateRange, *, user_id: Optional[str] = None) -> List[WeekEntry]: ...

	async def fetch_full_history(self, user_id: str) -> List[date]: ...

	async def fetch_histories(self, user_ids: Sequence[str]) -> Dict[str, List[date]]: ...

	async def fetch_entries_with_display_name(self, date_range: DateRange) -> List[Tuple[str, str, float]]: ...

	async def upsert_entry(self, user_id: str, week_start: date, total_hours: float) -> WeekEntry: ...


class PostgresEntryStore:
	"""Entry store reading ``screen_entries`` joined with ``profiles``."""

	async def _get_pool(self) -> asyncpg.Pool:
		return await get_pool()

	@asynccontextmanager
	async def _connection(self, operation: str) -> AsyncIterator[asyncpg.Connection]:
		try:
			pool = await self._get_pool()
			async with pool.acquire() as conn:
				yield conn
		except _STORE_ERRORS as exc:
			obs_metrics.upstream_failure(operation)
			LOGGER.warning("entry store failure", extra={"operation": operation, "error": str(exc)})
			raise UpstreamFetchFailure(operation) from exc

	async def fetch_entries(self, date_range: DateRange, *, user_id: Optional[str] = None) -> List[WeekEntry]:
		async with self._connection("fetch_entries") as conn:
			if user_id is not None:
				rows = await conn.fetch(
					"""
					SELECT user_id, week_start, total_hours
					FROM screen_entries
					WHERE user_id = $1 AND week_start BETWEEN $2 AND $3
					ORDER BY week_start ASC
					""",
					user_id,
					date_range.start,
					date_range.end,
				)
			else:
				rows = await conn.fetch(
					"""
					SELECT user_id, week_start, total_hours
					FROM screen_entries
					WHERE week_start BETWEEN $1 AND $2
					ORDER BY week_start ASC, user_id ASC
					""",
					date_range.start,
					date_range.end,
				)
		return [WeekEntry.from_record(row) for row in rows]

	async def fetch_full_history(self, user_id: str) -> List[date]:
		async with self._connection("fetch_full_history") as conn:
			rows = await conn.fetch(
				"SELECT week_start FROM screen_entries WHERE user_id = $1 ORDER BY week_start DESC",
				user_id,
			)
		return [row["week_start"] for row in rows]

	async def fetch_histories(self, user_ids: Sequence[str]) -> Dict[str, List[date]]:
		"""Full histories for many users in one round trip, newest first."""

		histories: Dict[str, List[date]] = defaultdict(list)
		if not user_ids:
			return histories
		async with self._connection("fetch_histories") as conn:
			rows = await conn.fetch(
				"""
				SELECT user_id, week_start
				FROM screen_entries
				WHERE user_id = ANY($1::text[])
				ORDER BY user_id, week_start DESC
				""",
				list(user_ids),
			)
		for row in rows:
			histories[str(row["user_id"])].append(row["week_start"])
		return histories

	async def fetch_entries_with_display_name(self, date_range: DateRange) -> List[Tuple[str, str, float]]:
		async with self._connection("fetch_entries_with_display_name") as conn:
			rows = await conn.fetch(
				"""
				SELECT e.user_id, COALESCE(p.name, e.user_id) AS display_name, e.total_hours
				FROM screen_entries e
				LEFT JOIN profiles p ON p.user_id = e.user_id
				WHERE e.week_start BETWEEN $1 AND $2
				ORDER BY e.user_id, e.week_start
				""",
				date_range.start,
				date_range.end,
			)
		return [(str(row["user_id"]), str(row["display_name"]), float(row["total_hours"])) for row in rows]

	async def upsert_entry(self, user_id: str, week_start: date, total_hours: float) -> WeekEntry:
		async with self._connection("upsert_entry") as conn:
			row = await conn.fetchrow(
				"""
				INSERT INTO screen_entries (user_id, week_start, total_hours, created_at, updated_at)
				VALUES ($1, $2, $3, NOW(), NOW())
				ON CONFLICT (user_id, week_start)
				DO UPDATE SET total_hours = EXCLUDED.total_hours,
					updated_at = NOW()
				RETURNING user_id, week_start, total_hours
				""",
				user_id,
				week_start,
				total_hours,
			)
		return WeekEntry.from_record(row)
