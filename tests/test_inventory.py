"""Tests for inventory.py (hotel room reservation)"""
import mongomock
from bson import ObjectId
import pytest

import inventory
from errors import Conflict, NotFound, ValidationFailed
from inventory import release_rooms, reserve_rooms


@pytest.fixture
def places():
    return mongomock.MongoClient()["inventory_test"]


@pytest.fixture
def hotel_id(places):
    return places["place"].insert_one({
        "name": "Harbor Hotel",
        "category": "Hotel",
        "rooms": [
            {"id": "101", "name": "Deluxe", "is_available": True},
            {"id": "102", "name": "Standard", "is_available": True},
        ],
        "rooms_version": 0,
    }).inserted_id


def flags(places, hotel_id):
    doc = places["place"].find_one({"_id": hotel_id})
    return {room["id"]: room["is_available"] for room in doc["rooms"]}, doc["rooms_version"]


def test_reserve_then_release(places, hotel_id):
    reserve_rooms(places, hotel_id, ["101"])
    assert flags(places, hotel_id) == ({"101": False, "102": True}, 1)

    release_rooms(places, hotel_id, ["101"])
    assert flags(places, hotel_id) == ({"101": True, "102": True}, 2)


def test_reserving_taken_room_changes_nothing(places, hotel_id):
    reserve_rooms(places, hotel_id, ["101"])
    with pytest.raises(Conflict) as exc:
        reserve_rooms(places, hotel_id, ["102", "101"])
    assert exc.value.extra["unavailable_rooms"] == ["Deluxe"]
    assert flags(places, hotel_id) == ({"101": False, "102": True}, 1)


def test_unknown_room(places, hotel_id):
    with pytest.raises(ValidationFailed):
        reserve_rooms(places, hotel_id, ["999"])


def test_missing_place(places):
    with pytest.raises(NotFound):
        reserve_rooms(places, ObjectId(), ["101"])
    release_rooms(places, ObjectId(), ["101"])


def test_place_without_version_field(places):
    pid = places["place"].insert_one(
        {"name": "Old Inn", "rooms": [{"id": "1", "name": "Attic", "is_available": True}]}
    ).inserted_id
    reserve_rooms(places, pid, ["1"])
    assert flags(places, pid) == ({"1": False}, 1)


def test_lost_race_rereads_and_sees_room_taken(places, hotel_id, monkeypatch):
    """A competing booking lands between our read and our write."""
    real_swap = inventory._swap_rooms
    calls = []

    def racing_swap(db, place, rooms):
        if not calls:
            calls.append("competitor")
            real_swap(db, dict(place), [dict(r, is_available=r["id"] != "101") for r in place["rooms"]])
        return real_swap(db, place, rooms)

    monkeypatch.setattr(inventory, "_swap_rooms", racing_swap)
    with pytest.raises(Conflict) as exc:
        reserve_rooms(places, hotel_id, ["101"])
    assert exc.value.extra["unavailable_rooms"] == ["Deluxe"]
    assert flags(places, hotel_id) == ({"101": False, "102": True}, 1)


def test_gives_up_after_repeated_version_mismatch(places, hotel_id, monkeypatch):
    monkeypatch.setattr(inventory, "_swap_rooms", lambda db, place, rooms: False)
    with pytest.raises(Conflict) as exc:
        reserve_rooms(places, hotel_id, ["101"])
    assert "try again" in exc.value.message
