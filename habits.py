"""
Habit persistence.

HabitStore applies defaults, trimming and timestamps on the way in and hands
id allocation to the configured scheme (see identifiers.py).
"""
import logging
from typing import List, Optional

from pymongo import ASCENDING
from pymongo.database import Database

import validation
from database import HABITS_COLLECTION, utcnow_iso
from errors import HabitNotFoundError
from identifiers import get_allocator

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = ("category", "frequency", "priority", "status", "target_date", "streak", "notes")


def _clean_optional(field: str, value):
    if field in validation.CHOICES:
        return validation.check_choice(field, value)
    if field == "target_date":
        return validation.parse_target_date(value)
    if field == "streak":
        return validation.parse_streak(value)
    return validation.clean_notes(value)


class HabitStore:
    """
    CRUD over the "habits" collection.

    Ids coming from callers may be raw strings (path parameters) or already
    parsed keys; both go through the allocator, which raises InvalidIdError
    for anything malformed. Documents are returned in their public form, so
    a raw ObjectId never leaves the store.
    """

    def __init__(self, db: Database, allocator=None):
        self.collection = db[HABITS_COLLECTION]
        self.ids = allocator or get_allocator()

    def get_all(self, filter: Optional[dict] = None, sort=None, projection: Optional[List[str]] = None) -> List[dict]:
        cursor = self.collection.find(filter or {}, self.ids.projection(projection))
        cursor = cursor.sort(sort or [(self.ids.sort_key, ASCENDING)])
        return [self.ids.public(doc) for doc in cursor]

    def get_by_id(self, habit_id) -> Optional[dict]:
        doc = self.collection.find_one(self.ids.key(self.ids.parse(habit_id)))
        return self.ids.public(doc) if doc else None

    def create(self, fields: dict) -> dict:
        now = utcnow_iso()
        habit = {
            "title": validation.require_text("title", fields.get("title")),
            "description": validation.require_text("description", fields.get("description")),
        }
        for field in OPTIONAL_FIELDS:
            value = _clean_optional(field, fields.get(field))
            habit[field] = validation.DEFAULTS[field] if value is None else value
        habit["created_at"] = now
        habit["updated_at"] = now

        created = self.ids.insert(self.collection, habit)
        logger.info("Created habit %s", created["id"])
        return self.ids.public(created)

    def update(self, habit_id, fields: dict) -> bool:
        """Overwrite the fields present in ``fields``; False if nothing changed."""
        key = self.ids.key(self.ids.parse(habit_id))
        changes = {
            "title": validation.require_text("title", fields.get("title")),
            "description": validation.require_text("description", fields.get("description")),
        }
        for field in OPTIONAL_FIELDS:
            if field not in fields:
                continue
            value = _clean_optional(field, fields[field])
            # an empty enum keeps the stored value
            if value is None and field in validation.CHOICES:
                continue
            changes[field] = value
        changes["updated_at"] = utcnow_iso()

        result = self.collection.update_one(key, {"$set": changes})
        if result.matched_count == 0:
            raise HabitNotFoundError(habit_id)
        return result.modified_count > 0

    def delete(self, habit_id) -> bool:
        result = self.collection.delete_one(self.ids.key(self.ids.parse(habit_id)))
        if result.deleted_count:
            logger.info("Deleted habit %s", habit_id)
        return result.deleted_count > 0
