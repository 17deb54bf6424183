from datetime import datetime, timezone

import pytest

from idgen.utils.id_layout import (
    COUNTER_SHIFT,
    INT64_MAX,
    MAX_SECONDS,
    MAX_SERVER_ID,
    SERVER_ID_SHIFT,
    DecodedID,
    compose_id,
    counter_key,
    decompose_id,
)


def test_fields_occupy_expected_bits():
    assert compose_id(1, 0, 0, 0) == 1 << 32
    assert compose_id(0, 1, 0, 0) == 1 << 22
    assert compose_id(0, 0, 1, 0) == 1 << 14
    assert compose_id(0, 0, 0, 1) == 1
    assert compose_id(0, 999, 255, 16383) == (999 << 22) | (255 << 14) | 16383


def test_decompose_known_id():
    id_ = (1_700_000_000 << 32) + (123 << 22) + (42 << 14) + 7

    decoded = decompose_id(id_)

    assert decoded == DecodedID(seconds=1_700_000_000, millis=123, counter=42, server_id=7)
    assert decoded.epoch_ms == 1_700_000_000_123
    assert decoded.created_at == datetime(2023, 11, 14, 22, 13, 20, 123000, tzinfo=timezone.utc)


def test_ids_sort_by_time_then_counter():
    earlier = compose_id(1_700_000_000, 999, 255, 16383)
    later = compose_id(1_700_000_001, 0, 0, 0)
    same_ms_next_counter = compose_id(1_700_000_001, 0, 1, 0)

    assert earlier < later < same_ms_next_counter


def test_seconds_past_int32_wrap_to_negative():
    id_ = compose_id(MAX_SECONDS, 0, 0, 5)

    assert id_ < 0
    assert decompose_id(id_) == DecodedID(MAX_SECONDS, 0, 0, 5)


@pytest.mark.parametrize(
    "fields",
    [
        (MAX_SECONDS + 1, 0, 0, 0),
        (-1, 0, 0, 0),
        (0, 1000, 0, 0),
        (0, 0, 256, 0),
        (0, 0, 0, 16384),
    ],
)
def test_compose_rejects_out_of_range_fields(fields):
    with pytest.raises(ValueError):
        compose_id(*fields)


def test_decompose_rejects_values_wider_than_int64():
    with pytest.raises(ValueError):
        decompose_id(INT64_MAX + 1)


def test_counter_key_format():
    assert counter_key("orders", 12, 1_700_000_000_123) == "orders:12:1700000000123"


def test_server_id_round_trips_through_its_slot():
    id_ = compose_id(0, 0, 0, MAX_SERVER_ID)

    assert id_ == MAX_SERVER_ID << SERVER_ID_SHIFT
    assert decompose_id(id_ | (1 << COUNTER_SHIFT)).server_id == MAX_SERVER_ID
