import sys
from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from app.domain.screentime.models import DateRange, WeekEntry
from app.infra import postgres
from app.main import app
from app.settings import settings


class InMemoryEntryStore:
	"""Entry store double keyed by (user_id, week_start), like the real table."""

	def __init__(self, names: Optional[Dict[str, str]] = None) -> None:
		self.rows: Dict[Tuple[str, date], float] = {}
		self.names: Dict[str, str] = dict(names or {})
		self.calls: List[str] = []

	def add(self, user_id: str, week_start: str | date, total_hours: float) -> None:
		if isinstance(week_start, str):
			week_start = date.fromisoformat(week_start)
		self.rows[(user_id, week_start)] = float(total_hours)

	async def fetch_entries(self, date_range: DateRange, *, user_id: Optional[str] = None) -> List[WeekEntry]:
		self.calls.append("fetch_entries")
		entries = [
			WeekEntry(user_id=uid, week_start=week, total_hours=hours)
			for (uid, week), hours in self.rows.items()
			if week in date_range and (user_id is None or uid == user_id)
		]
		return sorted(entries, key=lambda entry: (entry.week_start, entry.user_id))

	async def fetch_full_history(self, user_id: str) -> List[date]:
		self.calls.append("fetch_full_history")
		return sorted((week for uid, week in self.rows if uid == user_id), reverse=True)

	async def fetch_histories(self, user_ids: Sequence[str]) -> Dict[str, List[date]]:
		self.calls.append("fetch_histories")
		histories: Dict[str, List[date]] = defaultdict(list)
		for uid, week in sorted(self.rows, key=lambda key: key[1], reverse=True):
			if uid in user_ids:
				histories[uid].append(week)
		return histories

	async def fetch_entries_with_display_name(self, date_range: DateRange) -> List[Tuple[str, str, float]]:
		self.calls.append("fetch_entries_with_display_name")
		return [
			(uid, self.names.get(uid, uid), hours)
			for (uid, week), hours in sorted(self.rows.items())
			if week in date_range
		]

	async def upsert_entry(self, user_id: str, week_start: date, total_hours: float) -> WeekEntry:
		self.calls.append("upsert_entry")
		self.rows[(user_id, week_start)] = float(total_hours)
		return WeekEntry(user_id=user_id, week_start=week_start, total_hours=float(total_hours))


@pytest.fixture
def memory_store():
	return InMemoryEntryStore(names={"alice": "Alice", "bob": "Bob", "carol": "Carol"})


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from app.infra.redis import redis_client, set_redis_client
	original = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Run tests in dev mode so X-User-Id headers authenticate."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
