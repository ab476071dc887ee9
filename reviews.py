import logging

from bson import ObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from pymongo.database import Database

from auth import ensure_owner, get_current_user, owns, require_role
from database import get_db
from errors import Conflict, NotFound
from places import load_place, present_place
from schemas import NonEmptyStr, Review as ReviewSchema

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateReviewRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: NonEmptyStr


@router.post("/places/{place_id}/reviews", status_code=201)
def add_review(
    place_id: str,
    payload: CreateReviewRequest,
    visitor=Depends(require_role("visitor", "Only visitors can write reviews")),
    db: Database = Depends(get_db),
):
    place = load_place(db, place_id)
    # One review per visitor and place
    if any(owns(visitor, r.get("user_id")) for r in place.get("reviews", [])):
        raise Conflict("You have already reviewed this place")
    review = ReviewSchema(
        id=str(ObjectId()),
        user_id=visitor["id"],
        user_name=visitor["username"],
        rating=payload.rating,
        comment=payload.comment,
    ).model_dump()
    db["place"].update_one({"_id": place["_id"]}, {"$push": {"reviews": review}})
    logger.info("Review added", extra={"place_id": place_id, "review_id": review["id"], "user_id": visitor["id"]})
    return present_place(db["place"].find_one({"_id": place["_id"]}))


@router.delete("/places/{place_id}/reviews/{review_id}")
def delete_review(
    place_id: str,
    review_id: str,
    current_user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    place = load_place(db, place_id)
    review = next((r for r in place.get("reviews", []) if r.get("id") == review_id), None)
    if review is None:
        raise NotFound("Review not found")
    ensure_owner(current_user, review.get("user_id"))
    db["place"].update_one({"_id": place["_id"]}, {"$pull": {"reviews": {"id": review_id}}})
    logger.info("Review deleted", extra={"place_id": place_id, "review_id": review_id, "user_id": current_user["id"]})
    return present_place(db["place"].find_one({"_id": place["_id"]}))
