import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pymongo.database import Database

from auth import ensure_owner, get_current_user, get_optional_user, require_role
from database import get_db, sanitize, to_obj_id
from errors import NotFound, ValidationFailed
from schemas import Category, NonEmptyStr, Place as PlaceSchema, Room as RoomSchema

logger = logging.getLogger(__name__)

router = APIRouter()


class RoomInput(BaseModel):
    id: Optional[str] = None
    name: NonEmptyStr
    is_available: bool = True


class CreatePlaceRequest(BaseModel):
    name: NonEmptyStr
    description: NonEmptyStr
    category: Category
    address: NonEmptyStr
    latitude: float = 0
    longitude: float = 0
    image: Optional[str] = None
    rooms: List[RoomInput] = Field(default_factory=list)


class UpdatePlaceRequest(BaseModel):
    # owner, reviews and category are not editable
    model_config = ConfigDict(extra="forbid")

    name: Optional[NonEmptyStr] = None
    description: Optional[NonEmptyStr] = None
    address: Optional[NonEmptyStr] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image: Optional[str] = None
    rooms: Optional[List[RoomInput]] = None

    @field_validator("name", "description", "address", "latitude", "longitude", "rooms")
    @classmethod
    def not_null(cls, value):
        # Omit a field to leave it unchanged; null would erase a required value
        if value is None:
            raise ValueError("Field cannot be null")
        return value


def build_rooms(rooms: List[RoomInput]) -> List[Dict]:
    """Assign ids to new rooms and reject duplicate ids."""
    result = []
    seen = set()
    for room in rooms:
        room_id = (room.id or "").strip() or uuid.uuid4().hex[:8]
        if room_id in seen:
            raise ValidationFailed(f"Duplicate room id: {room_id}", field="rooms")
        seen.add(room_id)
        result.append(RoomSchema(id=room_id, name=room.name, is_available=room.is_available).model_dump())
    return result


def present_place(doc: Dict) -> Dict[str, Any]:
    place = sanitize(doc)
    place.pop("rooms_version", None)
    reviews = place.get("reviews", [])
    place["review_count"] = len(reviews)
    place["average_rating"] = (
        round(sum(r["rating"] for r in reviews) / len(reviews), 2) if reviews else None
    )
    return place


def load_place(db: Database, place_id: str) -> Dict:
    place = db["place"].find_one({"_id": to_obj_id(place_id, "Place")})
    if not place:
        raise NotFound("Place not found")
    return place


@router.get("/places")
def list_places(
    category: Optional[str] = None,
    search: Optional[str] = Query(None),
    current_user=Depends(get_optional_user),
    db: Database = Depends(get_db),
):
    q: Dict[str, Any] = {}
    if category and category != "all":
        q["category"] = category
    if search:
        pattern = re.escape(search)
        q["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    # Promoters only ever see their own listings
    if current_user and current_user.get("role") == "promoter":
        q["owner_id"] = current_user["id"]
    return [present_place(p) for p in db["place"].find(q).sort([("uploaded_at", -1)])]


@router.get("/places/{place_id}")
def get_place(place_id: str, current_user=Depends(get_optional_user), db: Database = Depends(get_db)):
    place = load_place(db, place_id)
    if current_user and current_user.get("role") == "promoter":
        ensure_owner(current_user, place["owner_id"])
    return present_place(place)


@router.post("/places", status_code=201)
def create_place(
    payload: CreatePlaceRequest,
    promoter=Depends(require_role("promoter", "Only promoters can create places")),
    db: Database = Depends(get_db),
):
    rooms = build_rooms(payload.rooms) if payload.category == "Hotel" else []
    place_doc = PlaceSchema(
        name=payload.name,
        description=payload.description,
        category=payload.category,
        address=payload.address,
        latitude=payload.latitude,
        longitude=payload.longitude,
        owner_id=promoter["id"],
        image=payload.image or None,
        rooms=rooms,
    ).model_dump()
    res = db["place"].insert_one(place_doc)
    place_doc["_id"] = res.inserted_id
    logger.info("Place created", extra={"place_id": str(res.inserted_id), "user_id": promoter["id"]})
    return present_place(place_doc)


@router.put("/places/{place_id}")
def update_place(
    place_id: str,
    payload: UpdatePlaceRequest,
    current_user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    place = load_place(db, place_id)
    ensure_owner(current_user, place["owner_id"])

    updates = payload.model_dump(exclude_unset=True, exclude={"rooms"})
    update_doc: Dict[str, Any] = {}
    if updates:
        update_doc["$set"] = updates
    if payload.rooms is not None:
        if place["category"] != "Hotel":
            raise ValidationFailed("Only hotels have rooms", field="rooms")
        update_doc.setdefault("$set", {})["rooms"] = build_rooms(payload.rooms)
        update_doc["$inc"] = {"rooms_version": 1}
    if update_doc:
        db["place"].update_one({"_id": place["_id"]}, update_doc)
        logger.info("Place updated", extra={"place_id": place_id, "user_id": current_user["id"]})
    return present_place(db["place"].find_one({"_id": place["_id"]}))


@router.delete("/places/{place_id}")
def delete_place(place_id: str, current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    place = load_place(db, place_id)
    ensure_owner(current_user, place["owner_id"])
    db["place"].delete_one({"_id": place["_id"]})
    removed = db["booking"].delete_many({"place_id": str(place["_id"])}).deleted_count
    logger.info(
        "Place deleted with %d booking(s)", removed, extra={"place_id": place_id, "user_id": current_user["id"]}
    )
    return {"message": "Place deleted successfully"}
