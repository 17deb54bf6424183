"""
Counter-Backed ID Generator Module

Generates unique, time-ordered 64-bit identifiers across any number of
processes and hosts. The only coordination point is a shared counter store
with an atomic increment (Redis INCRBY); the generator keeps no state between
calls and takes no local locks.

Allocation Algorithm:
    Each call picks one server id from the pool and then walks forward through
    millisecond buckets. For every bucket it claims a contiguous counter range
    with a single increment of ``left_num`` (the ids still missing):

    1. ms = max(now, last_ms), forced to last_ms + 1 when it did not advance
    2. counter = INCRBY "<namespace>:<server_id>:<ms>" left_num
    3. start = counter - left_num
    4. start == 0  -> this call created the bucket, set a 10 minute TTL
    5. start > 255 -> bucket already saturated, try the next millisecond
    6. counter < left_num -> counter went backwards, fail
    7. ids for counters [start, min(counter, 256)) are emitted; whatever did
       not fit spills into the next millisecond

    At most 8 buckets are tried per call, which bounds latency under
    contention. Running out of attempts fails the whole batch.

Concurrency:
    Disjointness between concurrent callers (in this process or any other)
    comes only from the atomicity of the store increment. Two batches that
    pick the same server id and millisecond simply receive different counter
    ranges.

Cancellation:
    Each store call is awaited, so cancelling the task or hitting ``timeout``
    aborts the in-flight call and fails the batch. Partial batches are never
    returned.
"""

import asyncio
import time
from typing import Callable, Optional, Sequence

from idgen.core.exceptions import (
    BitWidthOverflowError,
    ConfigurationError,
    CounterRecycledError,
    InsufficientIDsError,
)
from idgen.database.counter_store import CounterStore
from idgen.services.logger import setup_logger
from idgen.utils.id_layout import (
    BUCKET_CAPACITY,
    COUNTER_KEY_TTL,
    MAX_BUCKET_ATTEMPTS,
    MAX_COUNTER,
    MAX_SECONDS,
    MAX_SERVER_ID,
    SECONDS_BITS,
    SERVER_ID_BITS,
    compose_id,
    counter_key,
)
from idgen.utils.server_ids import pick_server_id

logger = setup_logger()


def _current_timestamp() -> int:
    """Returns the current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


class IDGenerator:
    """Allocates identifiers from per-millisecond counter buckets.

    Attributes:
        store: Counter store used to claim counter ranges.
        server_ids: Pool the per-call server id is drawn from.
        namespace: Prefix of every bucket key.
        clock: Callable returning the current Unix time in milliseconds.
    """

    def __init__(
        self,
        store: CounterStore,
        server_ids: Sequence[int],
        namespace: str = "id_generator",
        clock: Callable[[], int] = _current_timestamp,
    ):
        """Initializes the generator.

        Args:
            store: Counter store with atomic ``incr_by`` and ``expire``.
            server_ids: Non-empty pool of server ids (0-16383).
            namespace: Bucket key namespace shared by cooperating deployments.
            clock: Millisecond clock, replaceable for tests.

        Raises:
            ConfigurationError: If ``server_ids`` is empty.
        """
        if len(server_ids) == 0:
            raise ConfigurationError("idgen must init with valid server ids")

        self.store = store
        self.server_ids = list(server_ids)
        self.namespace = namespace
        self.clock = clock

    async def gen_id(self, timeout: Optional[float] = None) -> int:
        """Generates a single identifier.

        Args:
            timeout: Seconds allowed for the whole call, or None for no limit.

        Returns:
            The generated identifier.
        """
        try:
            ids = await self.gen_multi_ids(1, timeout=timeout)
        except Exception as e:
            logger.error("Failed to generate id: %s", e)
            raise
        return ids[0]

    async def gen_multi_ids(
        self, count: int, timeout: Optional[float] = None
    ) -> list[int]:
        """Generates ``count`` unique identifiers in ascending order.

        Args:
            count: Number of ids wanted, at least 1.
            timeout: Seconds allowed for the whole call, or None for no limit.

        Returns:
            Exactly ``count`` distinct identifiers.

        Raises:
            ValueError: If ``count`` is below 1.
            CounterRecycledError: If a bucket counter went backwards.
            BitWidthOverflowError: If the time or server id cannot be encoded.
            InsufficientIDsError: If the bucket attempt budget ran out.
            TimeoutError: If ``timeout`` elapsed before the batch completed.
        """
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")

        if timeout is None:
            return await self._allocate(count)
        return await asyncio.wait_for(self._allocate(count), timeout)

    async def _allocate(self, count: int) -> list[int]:
        left_num = count
        last_ms = 0
        ids: list[int] = []
        server_id = pick_server_id(self.server_ids)

        attempt = 0
        while left_num > 0 and attempt < MAX_BUCKET_ATTEMPTS:
            attempt += 1

            ms = max(self.clock(), last_ms)
            if ms <= last_ms:
                ms = last_ms + 1
            last_ms = ms

            key = counter_key(self.namespace, server_id, ms)
            counter = await self.store.incr_by(key, left_num)

            start = counter - left_num
            if start == 0:
                await self._expire(key)

            if start > MAX_COUNTER:
                logger.debug("Bucket %s saturated (start=%d), skipping", key, start)
                continue
            if counter < left_num:
                logger.error("Counter of bucket %s went backwards", key)
                raise CounterRecycledError(ms)

            if counter > MAX_COUNTER:
                end = BUCKET_CAPACITY
                left_num = counter - BUCKET_CAPACITY
                logger.debug("Bucket %s full, %d ids spill over", key, left_num)
            else:
                end = counter
                left_num = 0

            seconds, millis = divmod(ms, 1000)
            if seconds & MAX_SECONDS != seconds:
                raise BitWidthOverflowError("seconds", seconds, SECONDS_BITS)
            if server_id & MAX_SERVER_ID != server_id:
                raise BitWidthOverflowError("server_id", server_id, SERVER_ID_BITS)

            ids.extend(
                compose_id(seconds, millis, i, server_id) for i in range(start, end)
            )

        if len(ids) < count or left_num != 0:
            raise InsufficientIDsError(self.namespace, count, len(ids), last_ms)

        return ids

    async def _expire(self, key: str) -> None:
        # TTL only bounds storage; losing it never affects uniqueness
        try:
            await self.store.expire(key, COUNTER_KEY_TTL)
        except Exception as e:
            logger.warning("Failed to set expiry on %s: %s", key, e)
