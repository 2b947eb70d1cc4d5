"""Redis connection management.

Exposes a stable proxy so `from app.infra.redis import redis_client` keeps
working when the underlying client is swapped (fakeredis in tests).
"""

from __future__ import annotations

import redis.asyncio as redis

from app.settings import settings


class RedisProxy:
	"""Forward attribute access to the current Redis client."""

	def __init__(self, client: redis.Redis):
		self._client: redis.Redis = client

	def set_client(self, client: redis.Redis) -> None:
		self._client = client

	def __getattr__(self, item):
		return getattr(self._client, item)


_real_client = redis.from_url(settings.redis_url, decode_responses=True)
redis_client: RedisProxy = RedisProxy(_real_client)


def set_redis_client(client: redis.Redis) -> None:
	redis_client.set_client(client)


async def close_redis() -> None:
	"""Release the connection pool of whichever client is installed."""
	await redis_client.aclose()
