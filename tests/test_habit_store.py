import mongomock
import pytest

from database import HABITS_COLLECTION
from errors import FieldError, HabitNotFoundError, InvalidIdError
from habits import HabitStore
from identifiers import ObjectIdAllocator


def test_create_applies_defaults_and_trims(habits):
    habit = habits.create({"title": "  Run ", "description": " 5k  ", "notes": " easy pace "})

    assert habit["id"] == 1
    assert habit["title"] == "Run"
    assert habit["description"] == "5k"
    assert habit["category"] == "General"
    assert habit["frequency"] == "Daily"
    assert habit["priority"] == "Medium"
    assert habit["status"] == "Active"
    assert habit["target_date"] is None
    assert habit["streak"] == 0
    assert habit["notes"] == "easy pace"
    assert habit["created_at"] == habit["updated_at"]
    assert habit["created_at"].endswith("Z")
    assert "_id" not in habit


def test_created_habit_reads_back_equal(habits):
    created = habits.create({
        "title": "Read",
        "description": "20 pages",
        "category": "Learning",
        "frequency": "Weekly",
        "priority": "High",
        "status": "Paused",
        "target_date": "2025-01-31",
        "streak": "4",
    })
    assert habits.get_by_id(created["id"]) == created
    assert habits.get_by_id(str(created["id"])) == created
    assert created["streak"] == 4


def test_ids_increase(habits):
    ids = [habits.create({"title": f"h{n}", "description": "d"})["id"] for n in range(3)]
    assert ids == [1, 2, 3]


def test_get_all_sorted_by_id(habits, db):
    db[HABITS_COLLECTION].insert_many([
        {"id": 5, "title": "five"},
        {"id": 2, "title": "two"},
        {"id": 9, "title": "nine"},
    ])
    habits.create({"title": "ten", "description": "d"})

    assert [h["id"] for h in habits.get_all()] == [2, 5, 9, 10]


def test_get_all_empty(habits):
    assert habits.get_all() == []


def test_get_all_filter_and_projection(habits):
    habits.create({"title": "Gym", "description": "d", "category": "Fitness"})
    habits.create({"title": "Book", "description": "d", "category": "Learning"})
    habits.create({"title": "Swim", "description": "d", "category": "Fitness"})

    fitness = habits.get_all({"category": "Fitness"}, projection=["title"])

    assert fitness == [{"id": 1, "title": "Gym"}, {"id": 3, "title": "Swim"}]


@pytest.mark.parametrize("fields", [
    {"title": "   ", "description": "d"},
    {"title": "t", "description": ""},
    {"description": "d", "category": "Fitness"},
    {"title": None, "description": "d", "streak": 3},
])
def test_create_rejects_blank_required_fields(habits, fields):
    with pytest.raises(FieldError):
        habits.create(fields)
    assert habits.get_all() == []


def test_create_rejects_unknown_enum(habits):
    with pytest.raises(FieldError) as excinfo:
        habits.create({"title": "t", "description": "d", "frequency": "Hourly"})
    assert excinfo.value.message == "Invalid frequency"


def test_get_by_id_missing_and_malformed(habits):
    assert habits.get_by_id(99) is None
    with pytest.raises(InvalidIdError):
        habits.get_by_id("abc")


def test_update_overwrites_present_fields_only(habits):
    habit = habits.create({"title": "Run", "description": "5k", "streak": 3, "notes": "park"})

    assert habits.update(habit["id"], {"title": "Run ", "description": "10k", "status": "Completed"}) is True

    updated = habits.get_by_id(habit["id"])
    assert updated["description"] == "10k"
    assert updated["status"] == "Completed"
    assert updated["streak"] == 3
    assert updated["notes"] == "park"
    assert updated["created_at"] == habit["created_at"]


def test_update_can_clear_target_date(habits):
    habit = habits.create({"title": "t", "description": "d", "target_date": "2025-06-01"})
    habits.update(habit["id"], {"title": "t", "description": "d", "target_date": None})
    assert habits.get_by_id(habit["id"])["target_date"] is None


def test_update_missing_habit_writes_nothing(habits, db):
    habits.create({"title": "t", "description": "d"})
    before = list(db[HABITS_COLLECTION].find())

    with pytest.raises(HabitNotFoundError):
        habits.update(42, {"title": "x", "description": "y"})

    assert list(db[HABITS_COLLECTION].find()) == before


def test_update_requires_title(habits):
    habit = habits.create({"title": "t", "description": "d"})
    with pytest.raises(FieldError):
        habits.update(habit["id"], {"title": "", "description": "d"})
    assert habits.get_by_id(habit["id"])["title"] == "t"


def test_delete_twice(habits):
    habit = habits.create({"title": "t", "description": "d"})
    assert habits.delete(habit["id"]) is True
    assert habits.delete(habit["id"]) is False
    assert habits.get_by_id(habit["id"]) is None


def test_objectid_scheme_round_trip():
    store = HabitStore(mongomock.MongoClient()["focusflow_oid"], ObjectIdAllocator())
    first = store.create({"title": "a", "description": "d"})
    second = store.create({"title": "b", "description": "d"})

    assert isinstance(first["id"], str)
    assert store.get_by_id(first["id"]) == first
    assert [h["id"] for h in store.get_all()] == [first["id"], second["id"]]
    assert store.delete(second["id"]) is True
    with pytest.raises(InvalidIdError):
        store.get_by_id("1")
