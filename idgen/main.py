"""
FastAPI ID Generator Service

An HTTP front for the counter-backed ID generator. Every instance of this
service shares one Redis store and one namespace; uniqueness across instances
comes from Redis INCRBY on per-millisecond counter buckets, so instances can
be scaled out without any further coordination.

Key Features:
    - Single and batch ID generation
    - Decoding of an ID back into its time, counter and server id fields
    - Bounded request latency through a per-request generation timeout
    - Error mapping from generator failures to HTTP status codes

Architecture:
    - FastAPI for the web framework and automatic API documentation
    - Redis as the shared atomic counter store
    - pydantic-settings for environment configuration
    - Structured logging for monitoring and debugging
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request, status
from redis.exceptions import ConnectionError, ResponseError, TimeoutError

from idgen.core.config import settings
from idgen.core.exceptions import (
    BitWidthOverflowError,
    CounterRecycledError,
    IDGenError,
    InsufficientIDsError,
)
from idgen.database import close_redis, connect_to_redis, get_redis_client
from idgen.database.counter_store import RedisCounterStore
from idgen.database.schema import DecodedIDResponse, IDBatchResponse, IDResponse
from idgen.services.generator import IDGenerator
from idgen.services.logger import setup_logger
from idgen.utils.id_layout import INT64_MAX, INT64_MIN, MAX_MILLIS, decompose_id

logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler that wires the generator to Redis.

    Builds the Redis client, wraps it in a counter store and creates the
    generator from the configured namespace and server id pool. The Redis
    client is closed when the application shuts down.

    Args:
        app (FastAPI): The FastAPI application instance

    Yields:
        None: Control to the application during its lifetime
    """
    logger.info("Starting ID generator service...")

    connect_to_redis()
    app.state.redis = get_redis_client()

    server_ids = settings.server_id_pool
    app.state.generator = IDGenerator(
        RedisCounterStore(app.state.redis),
        server_ids,
        namespace=settings.NAMESPACE,
    )
    logger.info(
        "Generator ready (namespace=%s, %d server ids)",
        settings.NAMESPACE,
        len(server_ids),
    )

    yield

    logger.info("Application is shutting down.")
    await close_redis()


app = FastAPI(lifespan=lifespan)


def get_generator(request: Request) -> IDGenerator:
    """Return the generator created during application startup."""
    return request.app.state.generator


async def _generate(generator: IDGenerator, count: int) -> list[int]:
    """Run one generation call and translate its failures to HTTP errors."""
    try:
        return await generator.gen_multi_ids(count, timeout=settings.GENERATE_TIMEOUT)
    except asyncio.TimeoutError:
        logger.error("ID generation timed out after %ss", settings.GENERATE_TIMEOUT)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="ID generation timed out",
        )
    except InsufficientIDsError as e:
        logger.warning("ID generation exhausted its bucket attempts: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Not enough IDs available, retry later",
        )
    except (CounterRecycledError, BitWidthOverflowError) as e:
        logger.error("ID generation failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ID generation failed",
        )
    except (ConnectionError, TimeoutError) as e:
        logger.error("Counter store unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Counter store unavailable",
        )
    except (ResponseError, IDGenError) as e:
        logger.error("ID generation failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ID generation failed",
        )


@app.get(
    "/id",
    response_model=IDResponse,
    summary="Generate a single ID",
    description="""
    Allocate one unique, time-ordered 64-bit identifier.

    The identifier packs the allocation second, millisecond, a per-millisecond
    counter and the server id that allocated it. IDs allocated later sort
    after IDs allocated earlier, up to clock differences between instances.
    """,
    responses={
        503: {
            "description": "Counter store unavailable or bucket attempts exhausted",
            "content": {
                "application/json": {
                    "example": {"detail": "Not enough IDs available, retry later"}
                }
            },
        },
        504: {
            "description": "Generation did not finish within the configured timeout",
            "content": {
                "application/json": {"example": {"detail": "ID generation timed out"}}
            },
        },
    },
)
async def generate_id(generator: IDGenerator = Depends(get_generator)):
    """Generate a single identifier.

    Args:
        generator (IDGenerator): The application generator.

    Returns:
        IDResponse: The generated identifier.
    """
    ids = await _generate(generator, 1)
    return IDResponse(id=ids[0])


@app.get(
    "/ids",
    response_model=IDBatchResponse,
    summary="Generate a batch of IDs",
    description="""
    Allocate a batch of unique identifiers in a single call.

    Up to 256 IDs fit in one millisecond bucket of one server id. Larger
    batches, or batches that race other callers for the same bucket, spill
    into the following milliseconds. The whole batch either succeeds or
    fails; partial batches are never returned.
    """,
)
async def generate_ids(
    count: int = Query(
        ...,
        ge=1,
        le=settings.MAX_BATCH_SIZE,
        description="Number of identifiers to generate",
        examples=[10],
    ),
    generator: IDGenerator = Depends(get_generator),
):
    """Generate a batch of identifiers.

    Args:
        count (int): Number of identifiers wanted.
        generator (IDGenerator): The application generator.

    Returns:
        IDBatchResponse: The identifiers in ascending order.
    """
    ids = await _generate(generator, count)
    return IDBatchResponse(count=len(ids), ids=ids)


@app.get(
    "/id/{id_}/decode",
    response_model=DecodedIDResponse,
    summary="Decode an ID",
    description="""
    Split an identifier into the fields packed into it: allocation second and
    millisecond, bucket counter and server id.
    """,
)
async def decode_id(
    id_: int = Path(
        ...,
        ge=INT64_MIN,
        le=INT64_MAX,
        description="Identifier to decode",
        examples=[7306706227745849345],
    ),
):
    """Decode an identifier into its fields.

    Args:
        id_ (int): The identifier to decode.

    Returns:
        DecodedIDResponse: The decoded fields.
    """
    decoded = decompose_id(id_)
    if decoded.millis > MAX_MILLIS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Not a generated ID: millisecond field out of range",
        )

    return DecodedIDResponse(
        id=id_,
        seconds=decoded.seconds,
        millis=decoded.millis,
        counter=decoded.counter,
        server_id=decoded.server_id,
        epoch_ms=decoded.epoch_ms,
        created_at=decoded.created_at,
    )
