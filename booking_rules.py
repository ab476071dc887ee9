"""Booking rules shared by the API and the client.

Pure functions: category-specific validation of booking details, derivation of
the scheduled date and duration, hotel room selection checks and the booking
status state machine::

    pending -> confirmed
    pending -> cancelled

confirmed and cancelled are terminal.
"""

import re
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Set, Tuple

from errors import Conflict, ValidationFailed
from schemas import BOOKABLE_CATEGORIES, HotelDetails, MountainDetails, RestaurantDetails

MINUTES_PER_DAY = 24 * 60
DEFAULT_RESTAURANT_MINUTES = 120

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

ALLOWED_TRANSITIONS: Dict[str, Set[str]] = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": set(),
    "cancelled": set(),
}


def today() -> date:
    return datetime.now(timezone.utc).date()


def is_bookable(category: str) -> bool:
    return category in BOOKABLE_CATEGORIES


def validate_details(details, on: date) -> None:
    """Check ``details`` against the rules of its category.

    ``on`` is the current date; nothing may start before it. Raises
    ValidationFailed naming the offending field.
    """
    if isinstance(details, RestaurantDetails):
        if details.reservation_date < on:
            raise ValidationFailed("Please select a future date", field="reservation_date")
        if not TIME_PATTERN.match(details.check_in_time or ""):
            raise ValidationFailed(
                "Please enter a valid time in HH:MM format (e.g., 19:30)", field="check_in_time"
            )
    elif isinstance(details, MountainDetails):
        if details.start_date < on:
            raise ValidationFailed("Start date must be in the future", field="start_date")
        if details.end_date <= details.start_date:
            raise ValidationFailed("End date must be after start date", field="end_date")
        if details.number_of_slots <= 0:
            raise ValidationFailed("Number of slots must be a positive number", field="number_of_slots")
    elif isinstance(details, HotelDetails):
        if details.check_in_date < on:
            raise ValidationFailed("Check-in date must be in the future", field="check_in_date")
        if details.check_out_date <= details.check_in_date:
            raise ValidationFailed("Check-out date must be after check-in date", field="check_out_date")
        if not details.selected_room_ids:
            raise ValidationFailed("Please select at least one room", field="selected_room_ids")
        if len(set(details.selected_room_ids)) != len(details.selected_room_ids):
            raise ValidationFailed("Each room can only be selected once", field="selected_room_ids")
    else:
        raise ValidationFailed("Unsupported booking details", field="details")


def derive_schedule(details, restaurant_minutes: int = DEFAULT_RESTAURANT_MINUTES) -> Tuple[str, int]:
    """Return ``(scheduled_date, duration_minutes)`` for validated details."""
    if isinstance(details, RestaurantDetails):
        return details.reservation_date.isoformat(), restaurant_minutes
    if isinstance(details, MountainDetails):
        days = (details.end_date - details.start_date).days
        return details.start_date.isoformat(), days * MINUTES_PER_DAY
    if isinstance(details, HotelDetails):
        nights = (details.check_out_date - details.check_in_date).days
        return details.check_in_date.isoformat(), nights * MINUTES_PER_DAY
    raise ValidationFailed("Unsupported booking details", field="details")


def check_room_selection(rooms: Iterable[dict], selected_ids: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Return ``(unknown_ids, unavailable_room_names)`` for a hotel room selection."""
    by_id = {room["id"]: room for room in rooms}
    unknown = [rid for rid in selected_ids if rid not in by_id]
    unavailable = [
        by_id[rid]["name"] for rid in selected_ids if rid in by_id and not by_id[rid].get("is_available", True)
    ]
    return unknown, unavailable


def set_room_availability(rooms: Iterable[dict], room_ids: Iterable[str], available: bool) -> List[dict]:
    ids = set(room_ids)
    return [{**room, "is_available": available} if room["id"] in ids else dict(room) for room in rooms]


def check_transition(current: str, new: str) -> None:
    """Raise Conflict unless ``current -> new`` is allowed. Same status is a no-op."""
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise Conflict(f"Cannot change booking status from {current} to {new}", field="status")
