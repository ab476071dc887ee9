from datetime import timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from booking_rules import today
from database import get_db
from main import app


@pytest.fixture
def db():
    return mongomock.MongoClient()["local_explorer_test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def lenient_client(client):
    """Client that returns 500 responses instead of re-raising server errors."""
    return TestClient(app, raise_server_exceptions=False)


def signup(client, email, role, username=None):
    r = client.post(
        "/api/auth/signup",
        json={"email": email, "password": "secret1", "username": username or email.split("@")[0], "role": role},
    )
    assert r.status_code == 201, r.text
    data = r.json()
    return {"Authorization": f"Bearer {data['token']}"}, data["user"]


@pytest.fixture
def promoter(client):
    return signup(client, "promoter@explorer.io", "promoter", "Pat Promoter")


@pytest.fixture
def other_promoter(client):
    return signup(client, "rival@explorer.io", "promoter", "Rita Rival")


@pytest.fixture
def visitor(client):
    return signup(client, "visitor@explorer.io", "visitor", "Vic Visitor")


@pytest.fixture
def other_visitor(client):
    return signup(client, "second@explorer.io", "visitor", "Sam Second")


@pytest.fixture
def make_place(client, promoter):
    def _make(headers=None, **fields):
        body = {
            "name": "Mario's Bistro",
            "description": "Italian food",
            "category": "Restaurant",
            "address": "1 Main Street",
            "latitude": 40.7,
            "longitude": -74.0,
        }
        body.update(fields)
        r = client.post("/api/places", json=body, headers=headers or promoter[0])
        assert r.status_code == 201, r.text
        return r.json()
    return _make


@pytest.fixture
def hotel(make_place):
    return make_place(
        name="Harbor Hotel",
        category="Hotel",
        rooms=[
            {"id": "101", "name": "Deluxe Sea View"},
            {"id": "102", "name": "Standard Double"},
            {"id": "201", "name": "Family Suite", "is_available": False},
        ],
    )


def days_ahead(n):
    return (today() + timedelta(days=n)).isoformat()
