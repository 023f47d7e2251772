"""
Habit identity schemes.

"sequential" keeps an integer ``id`` field allocated as max(id) + 1 and
guarded by a unique index; "objectid" uses MongoDB's own ``_id``.
"""
import logging
import os
from typing import List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from errors import IdAllocationError, InvalidIdError
from validation import MAX_INT64

logger = logging.getLogger(__name__)

HABIT_ID_SCHEME = os.getenv("HABIT_ID_SCHEME", "sequential").lower()
MAX_INSERT_ATTEMPTS = 5


def _is_number(text: str) -> bool:
    return text.isascii() and text.isdigit()


class SequentialIdAllocator:
    name = "sequential"
    sort_key = "id"

    def parse(self, raw) -> int:
        if isinstance(raw, bool):
            raise InvalidIdError(raw)
        if isinstance(raw, int):
            value = raw
        elif isinstance(raw, str) and _is_number(raw.strip()):
            value = int(raw.strip())
        else:
            raise InvalidIdError(raw)
        if value < 1 or value > MAX_INT64:
            raise InvalidIdError(raw)
        return value

    def key(self, habit_id: int) -> dict:
        return {"id": habit_id}

    def next_id(self, collection) -> int:
        last = list(collection.find({}, {"id": 1}).sort("id", DESCENDING).limit(1))
        return last[0]["id"] + 1 if last else 1

    def insert(self, collection, doc: dict) -> dict:
        for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
            doc = dict(doc, id=self.next_id(collection))
            try:
                collection.insert_one(dict(doc))
            except DuplicateKeyError:
                logger.warning("Habit id %s taken by a concurrent insert (attempt %d)", doc["id"], attempt)
                continue
            return doc
        raise IdAllocationError(f"Could not allocate a habit id after {MAX_INSERT_ATTEMPTS} attempts")

    def projection(self, fields: Optional[List[str]]) -> dict:
        if not fields:
            return {"_id": 0}
        projection = {field: 1 for field in fields}
        projection.update({"_id": 0, "id": 1})
        return projection

    def public(self, doc: dict) -> dict:
        doc = dict(doc)
        doc.pop("_id", None)
        return doc

    def ensure_index(self, collection):
        collection.create_index([("id", ASCENDING)], unique=True)


class ObjectIdAllocator:
    name = "objectid"
    sort_key = "_id"

    def parse(self, raw) -> ObjectId:
        if isinstance(raw, ObjectId):
            return raw
        if isinstance(raw, str) and ObjectId.is_valid(raw):
            return ObjectId(raw)
        raise InvalidIdError(raw)

    def key(self, habit_id: ObjectId) -> dict:
        return {"_id": habit_id}

    def insert(self, collection, doc: dict) -> dict:
        result = collection.insert_one(dict(doc))
        return dict(doc, id=str(result.inserted_id))

    def projection(self, fields: Optional[List[str]]) -> Optional[dict]:
        if not fields:
            return None
        return {field: 1 for field in fields if field != "id"}

    def public(self, doc: dict) -> dict:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return doc

    def ensure_index(self, collection):
        pass


_ALLOCATORS = {
    SequentialIdAllocator.name: SequentialIdAllocator,
    ObjectIdAllocator.name: ObjectIdAllocator,
}


def get_allocator(scheme: Optional[str] = None):
    scheme = (scheme or HABIT_ID_SCHEME).lower()
    try:
        return _ALLOCATORS[scheme]()
    except KeyError:
        raise ValueError(f"Unknown HABIT_ID_SCHEME {scheme!r}, expected one of {sorted(_ALLOCATORS)}")
