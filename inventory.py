"""Hotel room reservation.

Rooms live inside their place document. Every change to the room list is a
conditional update on ``rooms_version`` (compare-and-set), so two bookings
racing for the same room cannot both flip it to unavailable: the loser sees
a version mismatch, re-reads the place and then finds the room taken.
"""
import logging
from typing import Dict, Iterable, List

from bson import ObjectId
from pymongo.database import Database

from booking_rules import check_room_selection, set_room_availability
from errors import Conflict, NotFound, ValidationFailed

logger = logging.getLogger(__name__)

MAX_CAS_ATTEMPTS = 3


def _version_filter(place: Dict) -> Dict:
    if "rooms_version" in place:
        return {"_id": place["_id"], "rooms_version": place["rooms_version"]}
    return {"_id": place["_id"], "rooms_version": {"$exists": False}}


def _swap_rooms(db: Database, place: Dict, rooms: List[Dict]) -> bool:
    result = db["place"].update_one(
        _version_filter(place), {"$set": {"rooms": rooms}, "$inc": {"rooms_version": 1}}
    )
    return result.modified_count == 1


def reserve_rooms(db: Database, place_id: ObjectId, room_ids: Iterable[str]) -> None:
    """Mark ``room_ids`` unavailable, or raise without changing anything.

    Unknown ids raise ValidationFailed; rooms already taken raise Conflict
    carrying ``unavailable_rooms`` (room names).
    """
    room_ids = list(room_ids)
    for _ in range(MAX_CAS_ATTEMPTS):
        place = db["place"].find_one({"_id": place_id}, {"rooms": 1, "rooms_version": 1})
        if not place:
            raise NotFound("Place not found")
        rooms = place.get("rooms", [])
        unknown, unavailable = check_room_selection(rooms, room_ids)
        if unknown:
            raise ValidationFailed(f"Unknown room id(s): {', '.join(unknown)}", field="selected_room_ids")
        if unavailable:
            logger.warning(
                "Rooms unavailable", extra={"place_id": str(place_id), "room_ids": room_ids}
            )
            raise Conflict(
                "Some selected rooms are not available",
                field="selected_room_ids",
                unavailable_rooms=unavailable,
            )
        if _swap_rooms(db, place, set_room_availability(rooms, room_ids, False)):
            return
    raise Conflict("Room availability changed, please try again", field="selected_room_ids")


def release_rooms(db: Database, place_id: ObjectId, room_ids: Iterable[str]) -> None:
    """Mark ``room_ids`` available again. Ids no longer on the place are ignored."""
    room_ids = list(room_ids)
    if not room_ids:
        return
    for _ in range(MAX_CAS_ATTEMPTS):
        place = db["place"].find_one({"_id": place_id}, {"rooms": 1, "rooms_version": 1})
        if not place:
            return
        if _swap_rooms(db, place, set_room_availability(place.get("rooms", []), room_ids, True)):
            logger.info("Rooms released", extra={"place_id": str(place_id), "room_ids": room_ids})
            return
    raise Conflict("Room availability changed, please try again")
