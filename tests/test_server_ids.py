from collections import Counter

import pytest
from pydantic import ValidationError

from idgen.core.config import Settings
from idgen.core.exceptions import ConfigurationError
from idgen.utils.id_layout import BUCKET_CAPACITY, MAX_BUCKET_ATTEMPTS
from idgen.utils.server_ids import parse_server_ids, pick_server_id


def test_pick_returns_pool_member():
    pool = [4, 8, 15]

    assert all(pick_server_id(pool) in pool for _ in range(100))


def test_pick_is_roughly_uniform():
    pool = [1, 2, 3, 4]
    draws = 8000

    counts = Counter(pick_server_id(pool) for _ in range(draws))

    assert set(counts) == set(pool)
    expected = draws / len(pool)
    # Standard deviation per bucket is about 39 here
    for server_id in pool:
        assert abs(counts[server_id] - expected) < 250


def test_parse_ids_and_ranges():
    assert parse_server_ids("1, 2,10-12") == [1, 2, 10, 11, 12]


def test_parse_keeps_first_seen_order_without_duplicates():
    assert parse_server_ids("5,3-6,1") == [5, 3, 4, 6, 1]


def test_parse_accepts_full_range():
    assert len(parse_server_ids("0-16383")) == 16384


@pytest.mark.parametrize(
    "text",
    ["", " , ", "a", "1-b", "5-3", "16384", "0-16384", "-1"],
)
def test_parse_rejects_invalid_pools(text):
    with pytest.raises(ConfigurationError):
        parse_server_ids(text)


def test_settings_expose_parsed_pool():
    settings = Settings(SERVER_IDS="7,100-102")

    assert settings.server_id_pool == [7, 100, 101, 102]


def test_default_batch_size_fits_one_call():
    assert Settings().MAX_BATCH_SIZE == MAX_BUCKET_ATTEMPTS * BUCKET_CAPACITY


@pytest.mark.parametrize("size", [0, MAX_BUCKET_ATTEMPTS * BUCKET_CAPACITY + 1])
def test_batch_size_beyond_one_call_is_rejected(size):
    with pytest.raises(ValidationError):
        Settings(MAX_BATCH_SIZE=size)
