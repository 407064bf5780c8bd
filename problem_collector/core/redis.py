"""Redis connection pool shared by the job status store and the task queue.

The pool is an ARQ ``ArqRedis`` (a ``redis.asyncio.Redis`` subclass), so the
same connection serves ``enqueue_job`` and plain GET/SET for job status.

Without Redis the service still starts (degraded mode):
- Job endpoints answer 503 while no pool exists
- Callers passing ``reconnect=True`` retry the connection at most once per
  ``RECONNECT_INTERVAL_SECONDS``, and the job services are built on the
  first success
- Once created, the pool is kept for the life of the process; redis-py
  reconnects its connections by itself after an outage
"""

import logging
import time

from arq.connections import ArqRedis, RedisSettings, create_pool

from problem_collector.config import get_settings

logger = logging.getLogger(__name__)

RECONNECT_INTERVAL_SECONDS = 10

_redis_pool: ArqRedis | None = None
_last_failed_attempt: float | None = None  # time.monotonic() of the last failed connect


def _parse_redis_settings() -> RedisSettings:
    """Parse redis_url into ARQ RedisSettings with fast failure."""
    settings = get_settings()
    base = RedisSettings.from_dsn(settings.redis_url)
    return RedisSettings(
        host=base.host,
        port=base.port,
        unix_socket_path=base.unix_socket_path,
        database=base.database,
        password=base.password,
        ssl=base.ssl,
        conn_timeout=2,
        conn_retries=0,
        conn_retry_delay=0,
    )


async def get_redis_pool(reconnect: bool = False) -> ArqRedis | None:
    """Get or create the Redis connection pool.

    Returns None if Redis is unavailable (degraded mode). After a failed
    attempt, plain calls keep returning None; ``reconnect=True`` tries again
    once ``RECONNECT_INTERVAL_SECONDS`` have passed since that failure.
    """
    global _redis_pool, _last_failed_attempt
    if _redis_pool is not None:
        return _redis_pool
    if _last_failed_attempt is not None:
        if not reconnect or time.monotonic() - _last_failed_attempt < RECONNECT_INTERVAL_SECONDS:
            return None

    try:
        _redis_pool = await create_pool(_parse_redis_settings())
    except (ConnectionError, OSError, Exception) as e:
        _last_failed_attempt = time.monotonic()
        logger.warning(f"Redis unavailable, running in degraded mode: {e}")
        return None

    _last_failed_attempt = None
    logger.info("Redis connection pool created")
    return _redis_pool


async def close_redis_pool() -> None:
    """Close the Redis connection pool on shutdown."""
    global _redis_pool, _last_failed_attempt
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
        logger.info("Redis connection pool closed")
    _last_failed_attempt = None


async def is_redis_available() -> bool:
    """Check if Redis is connected and responding.

    A failed ping leaves the pool in place: the store, executor and worker
    hold references to it and its connections recover once Redis is back.
    """
    pool = await get_redis_pool(reconnect=True)
    if pool is None:
        return False

    try:
        await pool.ping()
        return True
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        return False
