class IDGenError(Exception):
    """Base class for errors raised by the ID generator."""

    pass


class ConfigurationError(IDGenError):
    """Raised when the generator or its server id pool is misconfigured."""

    pass


class CounterRecycledError(IDGenError):
    """Raised when a bucket counter came back smaller than the requested delta.

    The store lost or reset the bucket underneath us, so ids from it may
    already have been handed out. Never retried.
    """

    def __init__(self, ms: int):
        self.ms = ms
        super().__init__(f"Recycling of counting space occurs, ms={ms}")


class BitWidthOverflowError(IDGenError):
    """Raised when a field does not fit its slot in the ID layout."""

    def __init__(self, field: str, value: int, bits: int):
        self.field = field
        self.value = value
        self.bits = bits
        super().__init__(f"{field} more than {bits} bits, {field}={value}")


class InsufficientIDsError(IDGenError):
    """Raised when the bucket attempt budget ran out before the batch was full."""

    def __init__(self, namespace: str, expected: int, gotten: int, last_ms: int):
        self.namespace = namespace
        self.expected = expected
        self.gotten = gotten
        self.last_ms = last_ms
        super().__init__(
            f"Not enough IDs generated, ns={namespace}, expect={expected}, "
            f"gotten={gotten}, last_ms={last_ms}"
        )
