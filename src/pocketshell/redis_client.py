"""Redis client factory.

Session snapshots go to Redis when one is reachable. Every caller treats a
None client as "keep state in memory".
"""

import logging
import os

import redis

logger = logging.getLogger(__name__)


def redis_enabled() -> bool:
    return os.environ.get("REDIS_ENABLED", "true").lower() not in ("false", "0", "no")


def get_redis_client(
    host: str | None = None,
    port: int | None = None,
    db: int | None = None,
) -> redis.Redis | None:
    """Connect to Redis for session snapshots.

    REDIS_URL takes precedence over REDIS_HOST/REDIS_PORT/REDIS_DB.

    Args:
        host: Redis host (default: REDIS_HOST or "localhost")
        port: Redis port (default: REDIS_PORT or 6379)
        db: Database number (default: REDIS_DB or 0)

    Returns:
        A client that answered PING, or None if Redis is disabled or unreachable
    """
    if not redis_enabled():
        logger.info("Redis disabled by REDIS_ENABLED; session snapshots stay in memory")
        return None

    url = os.environ.get("REDIS_URL")
    options = {"decode_responses": True, "socket_connect_timeout": 2, "socket_timeout": 2}
    if url and host is None and port is None:
        client = redis.Redis.from_url(url, **options)
        where = url
    else:
        host = host or os.environ.get("REDIS_HOST", "localhost")
        port = port or int(os.environ.get("REDIS_PORT", "6379"))
        db = db if db is not None else int(os.environ.get("REDIS_DB", "0"))
        client = redis.Redis(host=host, port=port, db=db, **options)
        where = f"{host}:{port}/{db}"

    if not is_redis_healthy(client):
        logger.warning("Redis at %s is unreachable; session snapshots stay in memory", where)
        return None
    logger.info("Session snapshots stored in Redis at %s", where)
    return client


def is_redis_healthy(client: redis.Redis | None) -> bool:
    """PING the server. False for a missing client or any Redis error."""
    if client is None:
        return False
    try:
        return bool(client.ping())
    except redis.RedisError as e:
        logger.debug("Redis ping failed: %s", e)
        return False
