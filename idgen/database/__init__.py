"""
Redis Connection Module for the ID Generator Service

This module owns the process-wide Redis client that backs the counter store.
The generator itself never reaches for this global; it receives a
``CounterStore`` built on top of the client during application startup, which
keeps the allocation algorithm testable with in-memory stores.

Environment Configuration:
    - Development (ENV="dev"): external Redis host with SSL/TLS and
      username/password authentication
    - Production (ENV="prod"): internal Redis host without SSL, secured by
      network isolation

Connection Features:
    - Automatic response decoding to strings
    - Retry on timeout and periodic health checks
    - Socket timeouts bounded so a stalled store fails a batch instead of
      hanging it

Dependencies:
    - redis: Async Redis client
    - idgen.core.config: Environment configuration
    - idgen.services.logger: Logging
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import ConnectionError

from idgen.core.config import settings
from idgen.services.logger import setup_logger

# Global Redis client instance
redis_client: Optional[redis.Redis] = None

# Setup logger
logger = setup_logger()


def _connection_options() -> dict:
    """Build redis-py client options for the configured environment."""
    is_dev = settings.ENV == "dev"

    return {
        "host": settings.REDIS_HOST_EXTERNAL if is_dev else settings.REDIS_HOST_INTERNAL,
        "port": settings.REDIS_PORT,
        "username": settings.REDIS_USERNAME if is_dev else None,
        "password": settings.REDIS_PASSWORD if is_dev else None,
        "ssl": is_dev,
        "decode_responses": True,
        "retry_on_timeout": True,
        "health_check_interval": settings.REDIS_HEALTH_CHECK_INTERVAL,
        "socket_connect_timeout": settings.REDIS_SOCKET_CONNECT_TIMEOUT,
        "socket_timeout": settings.REDIS_SOCKET_TIMEOUT,
    }


def connect_to_redis() -> redis.Redis:
    """
    Create the global Redis client for the current environment.

    Development connects to the external host over TLS with credentials,
    production connects to the internal host without them. Socket timeouts and
    the health check interval come from settings. The client is created lazily
    by redis-py, so connection problems usually surface on the first command
    rather than here.

    Returns:
        redis.Redis: The configured async Redis client.

    Raises:
        ConnectionError: If the client cannot be configured.

    Example:
        >>> connect_to_redis()
        >>> client = get_redis_client()
        >>> await client.incrby("id_generator:1:1700000000000", 1)
    """
    global redis_client

    logger.info("Initializing Redis connection...")

    try:
        options = _connection_options()

        logger.info(
            f"Connecting to Redis at {options['host']}:{options['port']} "
            f"(SSL: {options['ssl']}, Auth: {bool(options['username'])})"
        )

        redis_client = redis.Redis(**options)

        logger.info("Redis connection established successfully.")

        return redis_client
    except ConnectionError as e:
        logger.error(f"Redis connection failed: {e}")
        raise e


def get_redis_client() -> redis.Redis:
    """
    Return the global Redis client created by ``connect_to_redis()``.

    Raises:
        RuntimeError: If called before ``connect_to_redis()``.
    """
    if redis_client is None:
        logger.error("Redis client not initialized. Call connect_to_redis() first.")
        raise RuntimeError("Redis client not initialized")

    return redis_client


async def close_redis() -> None:
    """Close the global Redis client, if one was created."""
    global redis_client

    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed.")
