from datetime import datetime

from pydantic import BaseModel, Field


class IDResponse(BaseModel):
    """Response model for a single generated identifier.

    Args:
        id (int): The generated identifier.
    """

    id: int = Field(
        ...,
        description="Generated 64-bit identifier",
        example=7306706227745849345,
    )


class IDBatchResponse(BaseModel):
    """Response model for a batch of generated identifiers.

    Args:
        count (int): Number of identifiers in the batch.
        ids (list[int]): The identifiers in ascending order.
    """

    count: int = Field(..., description="Number of identifiers returned")
    ids: list[int] = Field(
        ...,
        description="Generated identifiers in ascending order",
        example=[7306706227745849345, 7306706227745865729],
    )


class DecodedIDResponse(BaseModel):
    """Response model for the fields packed into an identifier.

    Args:
        id (int): The decoded identifier.
        seconds (int): Unix epoch seconds of the allocation bucket.
        millis (int): Millisecond part of the allocation bucket.
        counter (int): Position inside the bucket.
        server_id (int): Server id that allocated the identifier.
        epoch_ms (int): Bucket timestamp in Unix milliseconds.
        created_at (datetime): Bucket timestamp in UTC.
    """

    id: int
    seconds: int = Field(..., ge=0)
    millis: int = Field(..., ge=0, le=999)
    counter: int = Field(..., ge=0, le=255)
    server_id: int = Field(..., ge=0, le=16383)
    epoch_ms: int
    created_at: datetime
