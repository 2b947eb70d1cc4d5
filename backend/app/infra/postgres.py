"""AsyncPG pool shared by the entry store and readiness probes."""

from __future__ import annotations

import logging
from typing import Optional

import asyncpg

from app.settings import settings

LOGGER = logging.getLogger(__name__)

_pool: Optional[asyncpg.pool.Pool] = None


async def _init_connection(conn: asyncpg.Connection) -> None:
	# Hours are stored as NUMERIC(5,2); the domain works in floats
	await conn.set_type_codec(
		"numeric",
		encoder=str,
		decoder=float,
		schema="pg_catalog",
		format="text",
	)


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=max(settings.postgres_min_pool_size, settings.postgres_max_pool_size),
			command_timeout=settings.postgres_command_timeout,
			init=_init_connection,
		)
		LOGGER.info(
			"postgres pool ready",
			extra={"min_size": settings.postgres_min_pool_size, "max_size": settings.postgres_max_pool_size},
		)
	return _pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None
