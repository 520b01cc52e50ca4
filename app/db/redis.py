"""
Redis Connection Module

Async Redis connection management for:
1. ARQ task queue (progress aggregation after a test ends)
2. Health checks

When PROGRESS_AGGREGATION_MODE is "queue", ending a test:
1. Marks the test completed (fast)
2. Pushes an aggregation job to Redis
3. Returns to the user while a worker rebuilds the progress tables
"""

import logging
from typing import Optional

from redis.asyncio import Redis, ConnectionPool
from arq.connections import RedisSettings, ArqRedis, create_pool

from app.core.config import settings

# ============================================================
# Logging Setup
# ============================================================
logger = logging.getLogger(__name__)

# ============================================================
# Redis Connection Pool (for general Redis operations)
# ============================================================

_redis_pool: Optional[ConnectionPool] = None


def get_redis_pool() -> ConnectionPool:
    """
    Get or create the Redis connection pool (singleton).
    """
    global _redis_pool

    if _redis_pool is None:
        _redis_pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=10,
            decode_responses=False,
        )
        logger.info(f"Redis connection pool created: {settings.REDIS_URL}")

    return _redis_pool


async def get_redis() -> Redis:
    """Redis client backed by the shared pool."""
    return Redis(connection_pool=get_redis_pool())


async def close_redis_pool():
    """
    Close Redis connection pool during app shutdown.
    """
    global _redis_pool

    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection pool closed")


# ============================================================
# ARQ Redis Settings (for task queue)
# ============================================================

def get_arq_redis_settings(
    conn_timeout: int = 10,
    conn_retries: int = 5,
    conn_retry_delay: int = 1,
) -> RedisSettings:
    """
    Redis settings for ARQ, parsed from REDIS_URL
    (redis://[[username]:[password]@]host[:port][/db-number]).

    The defaults suit the worker, which can afford to wait for Redis.
    """
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    redis_settings.conn_timeout = conn_timeout
    redis_settings.conn_retries = conn_retries
    redis_settings.conn_retry_delay = conn_retry_delay
    return redis_settings


# ============================================================
# ARQ Connection Pool (for enqueueing tasks)
# ============================================================

_arq_pool: Optional[ArqRedis] = None


async def get_arq_pool() -> ArqRedis:
    """
    Get or create the ARQ Redis pool for enqueueing tasks.

    Usage:
        pool = await get_arq_pool()
        await pool.enqueue_job("aggregate_test_progress", str(test_id))
    """
    global _arq_pool

    if _arq_pool is None:
        # Enqueueing happens inside a request that falls back to inline
        # aggregation, so fail fast when Redis is down
        _arq_pool = await create_pool(
            get_arq_redis_settings(
                conn_timeout=settings.ARQ_ENQUEUE_CONN_TIMEOUT,
                conn_retries=settings.ARQ_ENQUEUE_CONN_RETRIES,
                conn_retry_delay=0,
            )
        )
        logger.info("ARQ Redis pool created")

    return _arq_pool


async def close_arq_pool():
    """Close ARQ Redis pool during shutdown."""
    global _arq_pool

    if _arq_pool is not None:
        await _arq_pool.close()
        _arq_pool = None
        logger.info("ARQ Redis pool closed")


# ============================================================
# Health Check
# ============================================================

async def check_redis_connection() -> bool:
    """
    True if Redis answers PING, False otherwise.
    """
    try:
        redis = await get_redis()
        response = await redis.ping()
        return bool(response)
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return False
