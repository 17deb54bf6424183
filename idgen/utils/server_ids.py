import secrets
from typing import Sequence

from idgen.core.exceptions import ConfigurationError
from idgen.utils.id_layout import MAX_SERVER_ID

_random = secrets.SystemRandom()


def pick_server_id(server_ids: Sequence[int]) -> int:
    """Pick one server id uniformly at random from the pool.

    Uses the OS entropy source, so concurrent processes started with the same
    pool do not share a selection sequence.

    Args:
        server_ids (Sequence[int]): Non-empty pool of server ids.

    Returns:
        int: The selected server id.
    """
    return server_ids[_random.randrange(len(server_ids))]


def parse_server_ids(text: str) -> list[int]:
    """Parse a server id pool such as ``"1,2,10-12"``.

    Args:
        text (str): Comma separated ids and inclusive ``low-high`` ranges.

    Returns:
        list[int]: The ids in first-seen order, without duplicates.

    Raises:
        ConfigurationError: If an item is malformed, a range is reversed, an id
            is outside 0-16383 or the pool ends up empty.
    """
    pool: list[int] = []
    seen: set[int] = set()

    for item in text.split(","):
        item = item.strip()
        if not item:
            continue

        low_text, sep, high_text = item.partition("-")
        try:
            low = int(low_text)
            high = int(high_text) if sep else low
        except ValueError:
            raise ConfigurationError(f"Invalid server id entry: {item!r}") from None

        if low > high:
            raise ConfigurationError(f"Reversed server id range: {item!r}")
        if low < 0 or high > MAX_SERVER_ID:
            raise ConfigurationError(
                f"Server ids must be between 0 and {MAX_SERVER_ID}, got {item!r}"
            )

        for server_id in range(low, high + 1):
            if server_id not in seen:
                seen.add(server_id)
                pool.append(server_id)

    if not pool:
        raise ConfigurationError("Server id pool is empty")

    return pool
