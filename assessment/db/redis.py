"""
Redis Connection Module

Redis backs the ARQ worker that runs the attempt reconciliation sweep.
The API only needs it for the health check.
"""

import logging
from typing import Optional

from redis.asyncio import Redis, ConnectionPool
from arq.connections import RedisSettings

from assessment.core.config import settings

logger = logging.getLogger(__name__)

# ============================================================
# Redis Connection Pool (for general Redis operations)
# ============================================================

# Global connection pool - initialized once, reused everywhere
_redis_pool: Optional[ConnectionPool] = None

def get_redis_pool() -> ConnectionPool:
    """
    Get or create the Redis connection pool.

    Uses singleton pattern - creates pool once, reuses thereafter.
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
    pool = get_redis_pool()
    return Redis(connection_pool=pool)


async def close_redis_pool():
    """Close Redis connection pool during app shutdown."""
    global _redis_pool

    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection pool closed")


# ============================================================
# ARQ Redis Settings (for the worker)
# ============================================================

def get_arq_redis_settings() -> RedisSettings:
    """
    Redis settings for the ARQ worker, parsed from REDIS_URL.

    Format: redis://[[username]:[password]@]host[:port][/db-number]
    """
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    redis_settings.conn_timeout = 10       # Timeout for initial connection (seconds)
    redis_settings.conn_retries = 5
    redis_settings.conn_retry_delay = 1
    return redis_settings

# ============================================================
# Health Check
# ============================================================

async def check_redis_connection() -> bool:
    """
    Check if Redis is reachable.

    Returns:
        True if Redis responds to PING, False otherwise
    """
    try:
        redis = await get_redis()
        response = await redis.ping()
        logger.debug("Redis health check: OK")
        return bool(response)
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return False
