"""
MongoDB connection for FocusFlow.

A single MongoClient is shared by every request handler. It is created on
first use and can be closed at shutdown; the next get_db() after a close
connects again.
"""
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from identifiers import get_allocator

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME")
DEFAULT_DATABASE_NAME = "focusflow"

HABITS_COLLECTION = "habits"
USERS_COLLECTION = "users"
SESSIONS_COLLECTION = "sessions"

_client: Optional[MongoClient] = None
_lock = threading.Lock()


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _select_database(client: MongoClient) -> Database:
    if DATABASE_NAME:
        return client[DATABASE_NAME]
    return client.get_default_database(DEFAULT_DATABASE_NAME)


def ensure_indexes(db: Database, allocator=None):
    (allocator or get_allocator()).ensure_index(db[HABITS_COLLECTION])
    db[USERS_COLLECTION].create_index([("username", ASCENDING)], unique=True)
    db[USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True)
    db[SESSIONS_COLLECTION].create_index([("jti", ASCENDING)], unique=True)
    db[SESSIONS_COLLECTION].create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)


def get_client() -> MongoClient:
    global _client
    if _client is None:
        with _lock:
            if _client is None:
                client = MongoClient(DATABASE_URL)
                try:
                    ensure_indexes(_select_database(client))
                except Exception:
                    client.close()
                    raise
                _client = client
                logger.info("Connected to MongoDB (database: %s)", _select_database(client).name)
    return _client


def get_db() -> Database:
    """FastAPI dependency returning the shared database handle."""
    return _select_database(get_client())


def close_db():
    global _client
    with _lock:
        if _client is not None:
            _client.close()
            _client = None
            logger.info("MongoDB connection closed")


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]):
    """Insert one document stamped with created_at; returns the inserted _id."""
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    if not doc.get("created_at"):
        doc["created_at"] = utcnow_iso()
    result = db[collection_name].insert_one(doc)
    return result.inserted_id
