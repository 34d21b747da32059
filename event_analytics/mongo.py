"""MongoDB storage for events.

Each validated event is stored as its own document, exactly as the client sent
it. MongoDB adds an `_id` on insert; we insert a copy so the caller's payload
is untouched, and project `_id` away on reads so callers get back what was
stored.
"""

from __future__ import annotations

import logging
from typing import Any

from bson.errors import InvalidDocument
from pymongo import ASCENDING, MongoClient, errors
from pymongo.collection import Collection

from .config import MONGO_COLLECTION, MONGO_DB, MONGO_URI
from .event import EVENT_TYPE_ORDER_COMPLETED
from .exceptions import StoreError

logger = logging.getLogger(__name__)


def get_collection(
    uri: str = MONGO_URI,
    db_name: str = MONGO_DB,
    collection_name: str = MONGO_COLLECTION,
) -> Collection:
    """Connect to MongoDB and return the events collection.

    Also creates the index used by the LTV query:
        find({type, userId})
    """
    client = MongoClient(uri)
    collection = client[db_name][collection_name]
    collection.create_index([("type", ASCENDING), ("userId", ASCENDING)])
    return collection


class MongoEventStore:
    """Event store backed by a MongoDB collection."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    def insert_event(self, payload: dict[str, Any]) -> None:
        try:
            self._collection.insert_one(dict(payload))
        except (errors.PyMongoError, InvalidDocument, OverflowError) as e:
            logger.error("[Mongo] Insert failed: %s userId=%s", e, payload.get("userId"))
            raise StoreError(f"insert failed: {e}") from e

        logger.info(
            "[Mongo] Inserted %s event for user %s",
            payload.get("type"),
            payload.get("userId"),
        )

    def find_order_completed(self, user_id: str) -> list[dict[str, Any]]:
        """Return the raw payloads of a user's completed orders."""
        query = {"type": EVENT_TYPE_ORDER_COMPLETED, "userId": user_id}
        try:
            return list(self._collection.find(query, {"_id": 0}))
        except errors.PyMongoError as e:
            logger.error("[Mongo] Query failed: %s userId=%s", e, user_id)
            raise StoreError(f"query failed: {e}") from e

    def close(self) -> None:
        self._collection.database.client.close()
