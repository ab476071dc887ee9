import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pymongo.database import Database

import booking_rules
from auth import ensure_owner, get_current_user, owns, require_role
from config import settings
from database import get_db, sanitize, to_obj_id
from errors import ApplicationError, Conflict, Forbidden, NotFound, ValidationFailed
from inventory import release_rooms, reserve_rooms
from places import load_place
from schemas import Booking as BookingSchema, BookingDetails, BookingStatus, HotelDetails

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateBookingRequest(BaseModel):
    place_id: Optional[str] = None
    price: float = Field(0, ge=0)
    details: BookingDetails


class UpdateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[BookingStatus] = None
    price: Optional[float] = Field(None, ge=0)
    details: Optional[BookingDetails] = None


def _load_booking(db: Database, booking_id: str) -> Dict:
    booking = db["booking"].find_one({"_id": to_obj_id(booking_id, "Booking")})
    if not booking:
        raise NotFound("Booking not found")
    return booking


def _ensure_party(user: Dict, booking: Dict) -> None:
    """Visitors reach their own bookings, promoters the bookings of their places."""
    if user["role"] == "visitor":
        ensure_owner(user, booking["visitor_id"])
    else:
        ensure_owner(user, booking["promoter_id"])


def _booked_rooms(booking: Dict) -> list:
    details = booking.get("details") or {}
    if details.get("category") != "Hotel":
        return []
    return list(details.get("selected_room_ids") or [])


def create_booking(db: Database, visitor: Dict, place_id: str, payload: CreateBookingRequest) -> Dict:
    place = load_place(db, place_id)
    promoter = db["user"].find_one({"_id": to_obj_id(place["owner_id"], "Promoter")})
    if not promoter:
        raise NotFound("Promoter not found")
    if not booking_rules.is_bookable(place["category"]):
        raise ValidationFailed("This place does not accept bookings", field="details")

    details = payload.details
    if details.category != place["category"]:
        raise ValidationFailed(
            f"{details.category} details cannot be used to book a {place['category']}", field="details"
        )
    booking_rules.validate_details(details, booking_rules.today())
    scheduled_date, duration = booking_rules.derive_schedule(details, settings.restaurant_booking_minutes)

    room_ids = details.selected_room_ids if isinstance(details, HotelDetails) else []
    booking_doc = BookingSchema(
        place_id=str(place["_id"]),
        place_name=place["name"],
        visitor_id=visitor["id"],
        visitor_name=visitor["username"],
        promoter_id=str(promoter["_id"]),
        price=payload.price,
        duration=duration,
        scheduled_date=scheduled_date,
        details=details,
    ).model_dump()
    # Dates inside details are stored as ISO strings
    booking_doc["details"] = details.model_dump(mode="json")

    if room_ids:
        reserve_rooms(db, place["_id"], room_ids)
    try:
        res = db["booking"].insert_one(booking_doc)
    except Exception:
        release_rooms(db, place["_id"], room_ids)
        raise
    booking_doc["_id"] = res.inserted_id
    logger.info(
        "Booking created",
        extra={"booking_id": str(res.inserted_id), "place_id": place_id, "user_id": visitor["id"]},
    )
    return sanitize(booking_doc)


@router.get("/bookings")
def list_bookings(current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    q: Dict[str, Any] = {}
    if current_user["role"] == "visitor":
        q["visitor_id"] = current_user["id"]
    else:
        q["promoter_id"] = current_user["id"]
    return [sanitize(b) for b in db["booking"].find(q).sort([("booking_date", -1)])]


@router.get("/bookings/{booking_id}")
def get_booking(booking_id: str, current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    booking = _load_booking(db, booking_id)
    _ensure_party(current_user, booking)
    return sanitize(booking)


@router.post("/bookings", status_code=201)
def create_booking_route(
    payload: CreateBookingRequest,
    visitor=Depends(require_role("visitor", "Only visitors can create bookings")),
    db: Database = Depends(get_db),
):
    if not payload.place_id:
        raise ValidationFailed("Place ID is required", field="place_id")
    return create_booking(db, visitor, payload.place_id, payload)


@router.post("/bookings/{place_id}", status_code=201)
def create_booking_for_place(
    place_id: str,
    payload: CreateBookingRequest,
    visitor=Depends(require_role("visitor", "Only visitors can create bookings")),
    db: Database = Depends(get_db),
):
    return create_booking(db, visitor, place_id, payload)


@router.put("/bookings/{booking_id}")
def update_booking(
    booking_id: str,
    payload: UpdateBookingRequest,
    current_user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    booking = _load_booking(db, booking_id)
    _ensure_party(current_user, booking)
    changes: Dict[str, Any] = {}

    if payload.status is not None:
        if current_user["role"] != "promoter" or not owns(current_user, booking["promoter_id"]):
            raise Forbidden("Only the promoter of this place can change the booking status")
        booking_rules.check_transition(booking["status"], payload.status)
        changes["status"] = payload.status

    if payload.price is not None or payload.details is not None:
        if not owns(current_user, booking["visitor_id"]):
            raise Forbidden("Only the visitor who made the booking can change it")
        if booking["status"] != "pending":
            raise Conflict("Only pending bookings can be changed")
        if payload.price is not None:
            changes["price"] = payload.price
        if payload.details is not None:
            changes.update(_changed_details(db, booking, payload.details))

    if not changes:
        return sanitize(booking)

    # Status guard: a concurrent status change makes this update miss
    result = db["booking"].update_one({"_id": booking["_id"], "status": booking["status"]}, {"$set": changes})
    if result.matched_count == 0:
        if payload.details is not None:
            _rollback_details(db, booking, payload.details)
        raise Conflict("Booking was changed by someone else, please reload")

    if changes.get("status") == "cancelled" and booking["status"] != "cancelled":
        release_rooms(db, to_obj_id(booking["place_id"], "Place"), _booked_rooms(booking))
    if "status" in changes and changes["status"] != booking["status"]:
        logger.info(
            "Booking status changed",
            extra={"booking_id": booking_id, "status": changes["status"], "user_id": current_user["id"]},
        )
    return sanitize(db["booking"].find_one({"_id": booking["_id"]}))


def _changed_details(db: Database, booking: Dict, details) -> Dict[str, Any]:
    """Validate new details for ``booking`` and move its room reservations."""
    current_category = (booking.get("details") or {}).get("category")
    if details.category != current_category:
        raise ValidationFailed(
            f"{details.category} details cannot be used for a {current_category} booking", field="details"
        )
    booking_rules.validate_details(details, booking_rules.today())
    scheduled_date, duration = booking_rules.derive_schedule(details, settings.restaurant_booking_minutes)

    if isinstance(details, HotelDetails):
        place_oid = to_obj_id(booking["place_id"], "Place")
        old_rooms = set(_booked_rooms(booking))
        new_rooms = set(details.selected_room_ids)
        added = [rid for rid in details.selected_room_ids if rid not in old_rooms]
        if added:
            reserve_rooms(db, place_oid, added)
        try:
            release_rooms(db, place_oid, [rid for rid in old_rooms if rid not in new_rooms])
        except Exception:
            release_rooms(db, place_oid, added)
            raise

    return {
        "details": details.model_dump(mode="json"),
        "scheduled_date": scheduled_date,
        "duration": duration,
    }


def _rollback_details(db: Database, booking: Dict, details) -> None:
    """Undo the room moves of _changed_details after a failed write."""
    if not isinstance(details, HotelDetails):
        return
    place_oid = to_obj_id(booking["place_id"], "Place")
    old_rooms = _booked_rooms(booking)
    release_rooms(db, place_oid, [rid for rid in details.selected_room_ids if rid not in old_rooms])
    try:
        reserve_rooms(db, place_oid, [rid for rid in old_rooms if rid not in details.selected_room_ids])
    except ApplicationError:
        logger.exception("Could not restore rooms", extra={"place_id": booking["place_id"]})


@router.delete("/bookings/{booking_id}")
def delete_booking(booking_id: str, current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    booking = _load_booking(db, booking_id)
    _ensure_party(current_user, booking)
    db["booking"].delete_one({"_id": booking["_id"]})
    if booking["status"] != "cancelled":
        release_rooms(db, to_obj_id(booking["place_id"], "Place"), _booked_rooms(booking))
    logger.info("Booking deleted", extra={"booking_id": booking_id, "user_id": current_user["id"]})
    return {"message": "Booking deleted successfully"}
