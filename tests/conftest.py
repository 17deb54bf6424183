from datetime import timedelta

import pytest

from idgen.services.generator import IDGenerator

# 2023-11-14T22:13:20.123Z
FROZEN_MS = 1_700_000_000_123


class InMemoryCounterStore:
    """Counter store fake with Redis INCRBY semantics on a plain dict."""

    def __init__(self, fail_expire: bool = False):
        self.counters: dict[str, int] = {}
        self.expiries: dict[str, timedelta] = {}
        self.incr_calls: list[tuple[str, int]] = []
        self.fail_expire = fail_expire

    async def incr_by(self, key: str, delta: int) -> int:
        self.incr_calls.append((key, delta))
        self.counters[key] = self.counters.get(key, 0) + delta
        return self.counters[key]

    async def expire(self, key: str, ttl: timedelta) -> None:
        if self.fail_expire:
            raise ConnectionError("expire failed")
        self.expiries[key] = ttl


class ScriptedCounterStore(InMemoryCounterStore):
    """Returns pre-set totals from incr_by instead of counting."""

    def __init__(self, totals: list[int]):
        super().__init__()
        self.totals = list(totals)

    async def incr_by(self, key: str, delta: int) -> int:
        self.incr_calls.append((key, delta))
        return self.totals.pop(0)


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = FROZEN_MS, step: int = 0):
        self.now = now
        self.step = step

    def __call__(self) -> int:
        now = self.now
        self.now += self.step
        return now


@pytest.fixture
def store():
    return InMemoryCounterStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_generator(clock):
    def _make(store, server_ids=(7,), namespace="test", clock=clock):
        return IDGenerator(store, server_ids, namespace=namespace, clock=clock)

    return _make
