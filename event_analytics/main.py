"""Analytics FastAPI application.

Responsibilities:
- `POST /v1/events`: validate an analytics event against the JSON schema and store it
- `GET /v1/ltv?userId=<id>`: sum a user's completed-order revenue

Handlers are plain synchronous functions; FastAPI runs them on its threadpool.
The schema and the store are created once at startup and shared by all requests.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import EVENT_SCHEMA_PATH
from .event import EventDecodeError, OrderCompleted, decode_event
from .exceptions import StoreError
from .schema import EventSchema
from .store import EventStore, create_store

logger = logging.getLogger(__name__)

# Set on startup.
event_schema: EventSchema | None = None
store: EventStore | None = None


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Load the schema and connect to storage; close storage on shutdown."""
    global event_schema, store

    event_schema = EventSchema.load(EVENT_SCHEMA_PATH)
    store = create_store()
    try:
        yield
    finally:
        store.close()


app = FastAPI(title="Analytics Server", lifespan=lifespan)


def get_event_schema() -> EventSchema:
    if event_schema is None:
        raise HTTPException(status_code=500, detail="event schema is not loaded")
    return event_schema


def get_store() -> EventStore:
    if store is None:
        raise HTTPException(status_code=500, detail="event store is not connected")
    return store


def _reject_constant(name: str):
    raise ValueError(f"{name} is not a JSON value")


def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def _parse_int(text: str) -> int:
    value = int(text)
    try:
        float(value)
    except OverflowError as e:
        raise ValueError(f"number out of range: {text}") from e
    return value


def parse_json(body: bytes):
    """Parse a request body as strict JSON.

    NaN/Infinity tokens and numbers that do not fit a double are rejected, so
    everything accepted here can be stored and summed.

    Raises:
        ValueError: the body is not valid JSON.
    """
    return json.loads(
        body,
        parse_constant=_reject_constant,
        parse_float=_parse_float,
        parse_int=_parse_int,
    )


async def read_body(request: Request) -> bytes:
    """Hand the raw request body to a sync handler."""
    return await request.body()


@app.get("/health")
def health() -> dict[str, str]:
    """Basic liveness endpoint."""
    return {"status": "ok"}


@app.post("/v1/events")
def create_event(
    body: bytes = Depends(read_body),
    schema: EventSchema = Depends(get_event_schema),
    event_store: EventStore = Depends(get_store),
):
    """Validate and store an event, then echo it back.

    Responses:
        200: the stored payload, byte for byte as sent
        400: body is not JSON (plain message), or fails the schema
             (JSON array of {"instancePath", "schemaPath"})
        500: the store failed
    """
    try:
        payload = parse_json(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"invalid JSON: {e}")

    violations = schema.validate(payload)
    if violations:
        logger.info("[API] Rejected event with %d schema violation(s)", len(violations))
        return JSONResponse(
            status_code=400, content=[v.model_dump() for v in violations]
        )

    try:
        event_store.insert_event(payload)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return Response(content=body, media_type="application/json")


@app.get("/v1/ltv", response_class=PlainTextResponse)
def get_ltv(userId: str = "", event_store: EventStore = Depends(get_store)):
    """Return the lifetime value (total completed-order revenue) of a user.

    The body is the sum as plain text with six decimals, e.g. `12.500000`.
    """
    try:
        payloads = event_store.find_order_completed(userId)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    # Stored payloads passed the schema on the way in, so this only fails if
    # something else wrote to the store.
    try:
        events = [decode_event(payload) for payload in payloads]
    except EventDecodeError as e:
        logger.error("[API] Stored event could not be decoded: %s userId=%s", e, userId)
        raise HTTPException(status_code=500, detail=str(e))

    total = sum(event.revenue for event in events if isinstance(event, OrderCompleted))
    return PlainTextResponse(f"{total:f}")
