import uuid

import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from database import ensure_indexes, get_db
from habits import HabitStore
from identifiers import SequentialIdAllocator
from users import UserStore


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    name = f"focusflow_test_{uuid.uuid4().hex[:8]}"
    database = client[name]
    ensure_indexes(database, SequentialIdAllocator())
    yield database
    client.drop_database(name)


@pytest.fixture
def habits(db):
    return HabitStore(db, SequentialIdAllocator())


@pytest.fixture
def users(db):
    return UserStore(db)


@pytest.fixture
def client(db):
    main.app.dependency_overrides[get_db] = lambda: db
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def account(users):
    users.create("runner", "runner@example.com", "secret123")
    return {"username": "runner", "password": "secret123"}


@pytest.fixture
def logged_in(client, account):
    response = client.post("/api/login", json=account)
    assert response.status_code == 200
    return client
