"""
Counter Store Module

The generator only needs two things from its backing store: an atomic
"increment by N and return the new total" and a way to put a time-to-live on
a key. This module declares that capability as a protocol and ships the Redis
adapter used in production.

Store Requirements:
    - incr_by must be linearizable per key: concurrent callers incrementing the
      same key each observe a distinct, non-overlapping slice of the total
    - Missing keys start at 0
    - expire is best-effort; the generator tolerates it failing

Redis Mapping:
    - incr_by -> INCRBY key delta
    - expire  -> EXPIRE key seconds
"""

from datetime import timedelta
from typing import Protocol

import redis.asyncio as redis
from redis.exceptions import ResponseError, TimeoutError

from idgen.services.logger import setup_logger

logger = setup_logger()


class CounterStore(Protocol):
    """Atomic counter capability required by the ID generator."""

    async def incr_by(self, key: str, delta: int) -> int:
        """Atomically adds ``delta`` to ``key`` and returns the new total."""
        ...

    async def expire(self, key: str, ttl: timedelta) -> None:
        """Sets or refreshes the time-to-live of ``key``."""
        ...


class RedisCounterStore:
    """Counter store backed by an async Redis client.

    Attributes:
        client: The ``redis.asyncio.Redis`` instance commands are sent through.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    async def incr_by(self, key: str, delta: int) -> int:
        """Runs ``INCRBY`` on the bucket key.

        Args:
            key (str): Counter bucket key.
            delta (int): Amount to add.

        Returns:
            int: The counter value after the increment.

        Raises:
            ResponseError: If the key holds a non-integer value.
            TimeoutError: If the Redis operation times out.
        """
        try:
            return int(await self.client.incrby(key, delta))
        except (ResponseError, TimeoutError) as e:
            logger.error("Redis INCRBY failed for key %s: %s", key, e)
            raise

    async def expire(self, key: str, ttl: timedelta) -> None:
        """Runs ``EXPIRE`` on the bucket key."""
        await self.client.expire(key, ttl)
