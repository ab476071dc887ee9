"""Tests for the API client and its session object"""
import pytest

from client import ApiError, ExplorerClient, Session
from conftest import days_ahead
from errors import ValidationFailed


@pytest.fixture
def api(client):
    return ExplorerClient(http=client)


def test_session_follows_login_and_logout(api):
    assert not api.session.is_authenticated
    user = api.signup("guide@explorer.io", "secret1", "Guide", role="promoter")
    assert api.session.is_authenticated
    assert api.session.role == "promoter"
    assert api.me()["id"] == user["id"]

    api.logout()
    assert api.session == Session()
    with pytest.raises(ApiError) as exc:
        api.me()
    assert exc.value.status_code == 401


def test_sessions_are_per_client(client):
    first = ExplorerClient(http=client)
    second = ExplorerClient(http=client)
    first.signup("one@explorer.io", "secret1", "One")
    assert not second.session.is_authenticated


def test_full_booking_flow(client):
    promoter = ExplorerClient(http=client)
    visitor = ExplorerClient(http=client)
    promoter.signup("host@explorer.io", "secret1", "Host", role="promoter")
    visitor.signup("guest@explorer.io", "secret1", "Guest")

    hotel = promoter.create_place(
        name="Lake Lodge", description="Quiet", category="Hotel", address="2 Lake Rd",
        rooms=[{"id": "A", "name": "Lakeside"}],
    )
    assert [p["name"] for p in visitor.list_places(category="Hotel")] == ["Lake Lodge"]

    booking = visitor.create_booking(hotel["id"], {
        "category": "Hotel",
        "check_in_date": days_ahead(3),
        "check_out_date": days_ahead(4),
        "selected_room_ids": ["A"],
    })
    assert booking["status"] == "pending"

    confirmed = promoter.set_booking_status(booking["id"], "confirmed")
    assert confirmed["status"] == "confirmed"
    assert [b["status"] for b in visitor.list_bookings()] == ["confirmed"]

    with pytest.raises(ApiError) as exc:
        visitor.set_booking_status(booking["id"], "cancelled")
    assert exc.value.status_code == 403


def test_booking_validated_before_sending(client, make_place):
    mountain = make_place(name="Peak", category="Mountain")
    visitor = ExplorerClient(http=client)
    visitor.signup("hiker@explorer.io", "secret1", "Hiker")

    with pytest.raises(ValidationFailed) as exc:
        visitor.create_booking(mountain["id"], {
            "category": "Mountain",
            "start_date": days_ahead(4),
            "end_date": days_ahead(2),
            "number_of_slots": 1,
        })
    assert exc.value.field == "end_date"
    assert visitor.list_bookings() == []


def test_api_error_carries_payload(client, make_place):
    place = make_place()
    visitor = ExplorerClient(http=client)
    visitor.signup("critic@explorer.io", "secret1", "Critic")
    visitor.add_review(place["id"], 3, "Fine")
    with pytest.raises(ApiError) as exc:
        visitor.add_review(place["id"], 5, "Again")
    assert exc.value.status_code == 409
    assert exc.value.message == "You have already reviewed this place"
    assert exc.value.payload["code"] == "CONFLICT"
