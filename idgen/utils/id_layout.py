"""
ID Layout Module

Bit layout shared by every identifier handed out by the generator. IDs are
64-bit integers packed from four fields with no gaps between them:

    |     32 bits      | 10 bits |  8 bits  |  14 bits  |
    |     seconds      | millis  | counter  | server_id |
    | unix epoch secs  |  0-999  |  0-255   |  0-16383  |

    - Seconds: Unix epoch seconds, must fit an unsigned 32-bit value
    - Millis: millisecond part of the bucket timestamp
    - Counter: position inside the per-millisecond counter bucket
    - Server ID: the pool member that allocated the ID

Ordering:
    Because the time fields sit in the high bits, IDs sort by the millisecond
    bucket they were allocated in. Inside one bucket they sort by counter, and
    the server id only breaks ties between different servers.

Counter buckets:
    Each (namespace, server_id, epoch millisecond) triple maps to one counter
    key in the store. The key format must stay identical between deployments
    that share a store and a namespace.
"""

from datetime import datetime, timedelta, timezone
from typing import NamedTuple

SECONDS_BITS = 32
MILLIS_BITS = 10
COUNTER_BITS = 8
SERVER_ID_BITS = 14

SERVER_ID_SHIFT = 0
COUNTER_SHIFT = SERVER_ID_BITS
MILLIS_SHIFT = COUNTER_SHIFT + COUNTER_BITS
SECONDS_SHIFT = MILLIS_SHIFT + MILLIS_BITS

MAX_SECONDS = (1 << SECONDS_BITS) - 1
MAX_MILLIS = 999
MAX_COUNTER = (1 << COUNTER_BITS) - 1
MAX_SERVER_ID = (1 << SERVER_ID_BITS) - 1

# Every bucket holds MAX_COUNTER + 1 ids
BUCKET_CAPACITY = MAX_COUNTER + 1

COUNTER_KEY_TTL = timedelta(minutes=10)
MAX_BUCKET_ATTEMPTS = 8

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


class DecodedID(NamedTuple):
    """The four fields packed into an identifier.

    Attributes:
        seconds: Unix epoch seconds of the allocation bucket.
        millis: Millisecond part of the allocation bucket (0-999).
        counter: Position inside the bucket (0-255).
        server_id: Server identifier that allocated the ID (0-16383).
    """

    seconds: int
    millis: int
    counter: int
    server_id: int

    @property
    def epoch_ms(self) -> int:
        """Epoch milliseconds of the bucket the ID was allocated in."""
        return self.seconds * 1000 + self.millis

    @property
    def created_at(self) -> datetime:
        """Bucket timestamp as an aware UTC datetime."""
        return datetime.fromtimestamp(self.seconds, tz=timezone.utc) + timedelta(
            milliseconds=self.millis
        )


def compose_id(seconds: int, millis: int, counter: int, server_id: int) -> int:
    """Packs the four ID fields into a single integer.

    Args:
        seconds: Unix epoch seconds (0 to 2**32 - 1).
        millis: Millisecond part (0-999).
        counter: Bucket position (0-255).
        server_id: Server identifier (0-16383).

    Returns:
        The packed identifier.

    Raises:
        ValueError: If any field is outside its range.
    """
    if not 0 <= seconds <= MAX_SECONDS:
        raise ValueError(f"seconds must be between 0 and {MAX_SECONDS}")
    if not 0 <= millis <= MAX_MILLIS:
        raise ValueError(f"millis must be between 0 and {MAX_MILLIS}")
    if not 0 <= counter <= MAX_COUNTER:
        raise ValueError(f"counter must be between 0 and {MAX_COUNTER}")
    if not 0 <= server_id <= MAX_SERVER_ID:
        raise ValueError(f"server_id must be between 0 and {MAX_SERVER_ID}")

    raw = (
        (seconds << SECONDS_SHIFT)
        + (millis << MILLIS_SHIFT)
        + (counter << COUNTER_SHIFT)
        + (server_id << SERVER_ID_SHIFT)
    )
    # Seconds past 2**31 - 1 wrap into the sign bit, as in a signed int64
    return raw - (1 << 64) if raw > INT64_MAX else raw


def decompose_id(id_: int) -> DecodedID:
    """Splits an identifier back into its fields.

    Seconds above 2**31 - 1 produce a negative signed 64-bit value; such
    values are accepted and decoded as their unsigned bit pattern.

    Raises:
        ValueError: If the value does not fit a signed 64-bit integer.
    """
    if not INT64_MIN <= id_ <= INT64_MAX:
        raise ValueError("id does not fit in a signed 64-bit integer")

    raw = id_ & ((1 << 64) - 1)
    return DecodedID(
        seconds=(raw >> SECONDS_SHIFT) & MAX_SECONDS,
        millis=(raw >> MILLIS_SHIFT) & ((1 << MILLIS_BITS) - 1),
        counter=(raw >> COUNTER_SHIFT) & MAX_COUNTER,
        server_id=(raw >> SERVER_ID_SHIFT) & MAX_SERVER_ID,
    )


def counter_key(namespace: str, server_id: int, ms: int) -> str:
    """Returns the store key of the counter bucket for one millisecond."""
    return f"{namespace}:{server_id}:{ms}"
