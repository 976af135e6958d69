"""
MongoDB access for the persistent part of the shop (registered users).

Catalog, carts and orders live in process memory; only accounts survive a
restart. The connection is lazy: pymongo does not talk to the server until
the first operation, so the app starts even when MongoDB is down and the
failure surfaces on the request that needs it.
"""
import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "shop")


def connect(url: str = DATABASE_URL, name: str = DATABASE_NAME) -> Database:
    client = MongoClient(url, serverSelectionTimeoutMS=3000)
    logger.info("Using MongoDB database %r", name)
    return client[name]


def create_document(db: Database, collection: str, data: Dict[str, Any]) -> Any:
    doc = dict(data)
    doc.setdefault("created_at", datetime.now(timezone.utc))
    result = db[collection].insert_one(doc)
    return result.inserted_id


def get_documents(db: Database, collection: str, filt: Optional[dict] = None,
                  projection: Optional[dict] = None, limit: Optional[int] = None) -> List[dict]:
    cursor = db[collection].find(filt or {}, projection)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def next_sequence(db: Database, name: str) -> int:
    """Atomically bump and return the counter called `name` (starts at 1)."""
    doc = db["counters"].find_one_and_update(
        {"_id": name},
        {"$inc": {"value": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return doc["value"]
