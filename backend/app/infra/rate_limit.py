"""Fixed-window Redis counters for per-user budgets."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Optional

from app.infra.redis import redis_client


@dataclass(frozen=True, slots=True)
class Budget:
	"""Outcome of spending one unit of a window's budget."""

	allowed: bool
	remaining: int
	retry_after: int


def _window_key(kind: str, actor_id: str, slot: int, window: int) -> str:
	return f"rl:{kind}:{actor_id}:{slot}:{window}"


async def consume(
	kind: str,
	actor_id: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> Budget:
	"""Count one ``kind`` action for ``actor_id`` in the current window."""

	window = max(1, int(window_seconds))
	now = time.time() if now is None else now
	slot = int(math.floor(now / window))
	retry_after = max(1, int(math.ceil((slot + 1) * window - now)))
	if limit <= 0:
		return Budget(allowed=False, remaining=0, retry_after=retry_after)

	key = _window_key(kind, actor_id, slot, window)
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window)
		count, _ = await pipe.execute()
	count = int(count)
	return Budget(allowed=count <= limit, remaining=max(limit - count, 0), retry_after=retry_after)


class RateLimitExceeded(Exception):
	"""Raised when a caller has spent its budget for the current window."""

	def __init__(self, reason: str = "rate_limited", *, retry_after: Optional[int] = None) -> None:
		super().__init__(reason)
		self.reason = reason
		self.retry_after = retry_after
