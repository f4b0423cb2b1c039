"""AsyncPG pool management for the backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from app.obs import metrics as obs_metrics
from app.obs.logging import get_logger
from app.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None

logger = get_logger("clubs.tx")


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			ssl="require" if settings.postgres_ssl else "disable",
		)
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


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


@asynccontextmanager
async def transaction(operation: str) -> AsyncIterator[asyncpg.Connection]:
	"""Open one atomic unit of work and yield its connection.

	Every repository call belonging to the operation must receive the yielded
	connection. The transaction commits when the block exits cleanly and rolls
	back when anything escapes it; the connection goes back to the pool either way.
	"""
	pool = await get_pool()
	async with pool.acquire() as conn:
		try:
			async with conn.transaction():
				yield conn
		except Exception as exc:
			obs_metrics.inc_club_tx_rollback(operation)
			logger.warning(
				"tx_rolled_back",
				extra={"operation": operation, "error": type(exc).__name__},
			)
			raise
