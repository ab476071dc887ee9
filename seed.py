"""Create indexes and load demo data.

    python seed.py            # add demo users and places if missing
    python seed.py --reset    # wipe users, places and bookings first
"""
import argparse
import logging
from datetime import timedelta
from typing import Dict

from bson import ObjectId
from pymongo.database import Database

import database
from auth import hash_password
from database import ensure_indexes
from logging_config import setup_logging
from schemas import Place, Review, Room, User, utcnow

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "demo123"

DEMO_PLACES = [
    {
        "name": "Mario's Italian Bistro",
        "description": "A cozy restaurant serving authentic Italian cuisine with a modern twist.",
        "category": "Restaurant",
        "address": "123 Main Street, Downtown",
        "latitude": 40.7128,
        "longitude": -74.006,
        "review": (5, "Amazing pasta and excellent service! Highly recommend the carbonara."),
    },
    {
        "name": "Central Park",
        "description": "Urban park with walking trails, playgrounds and scenic views.",
        "category": "Visitable Place",
        "address": "456 Park Avenue",
        "latitude": 40.7829,
        "longitude": -73.9654,
        "review": (4, "Lovely place for a morning jog. Very well maintained."),
    },
    {
        "name": "Brew & Bean Cafe",
        "description": "Artisan coffee shop with freshly baked pastries. Perfect for remote work.",
        "category": "Cafe",
        "address": "321 Coffee Lane",
        "latitude": 40.7489,
        "longitude": -73.968,
    },
    {
        "name": "Grand Mountain Resort",
        "description": "Guided hiking tours, camping packages and adventure activities.",
        "category": "Mountain",
        "address": "Mountain Trail Road, Alpine Valley",
        "latitude": 40.7589,
        "longitude": -73.9851,
    },
    {
        "name": "Harbor View Hotel",
        "description": "Waterfront hotel with sea-view rooms and a rooftop lounge.",
        "category": "Hotel",
        "address": "10 Harbor Street",
        "latitude": 40.7033,
        "longitude": -74.017,
        "rooms": [("101", "Deluxe Sea View"), ("102", "Standard Double"), ("201", "Family Suite")],
    },
]


def _get_or_create_user(db: Database, email: str, username: str, role: str) -> Dict:
    user = db["user"].find_one({"email": email})
    if user:
        return user
    doc = User(username=username, email=email, password_hash=hash_password(DEMO_PASSWORD), role=role).model_dump()
    doc["_id"] = db["user"].insert_one(doc).inserted_id
    logger.info("Created %s %s", role, email)
    return doc


def seed(db: Database, reset: bool = False) -> Dict[str, int]:
    """Load demo data into ``db`` and return per-collection counts."""
    if reset:
        for name in ("user", "place", "booking"):
            db[name].delete_many({})
        logger.info("Cleared existing data")
    ensure_indexes(db)

    promoter = _get_or_create_user(db, "demo@example.com", "DemoUser", "promoter")
    visitor = _get_or_create_user(db, "visitor@example.com", "VisitorDemo", "visitor")

    now = utcnow()
    for age_days, entry in enumerate(DEMO_PLACES):
        if db["place"].find_one({"name": entry["name"], "owner_id": str(promoter["_id"])}):
            continue
        reviews = []
        if "review" in entry:
            rating, comment = entry["review"]
            reviews.append(Review(
                id=str(ObjectId()),
                user_id=str(visitor["_id"]),
                user_name=visitor["username"],
                rating=rating,
                comment=comment,
                date=now - timedelta(days=1),
            ))
        place = Place(
            name=entry["name"],
            description=entry["description"],
            category=entry["category"],
            address=entry["address"],
            latitude=entry["latitude"],
            longitude=entry["longitude"],
            owner_id=str(promoter["_id"]),
            reviews=reviews,
            uploaded_at=now - timedelta(days=age_days),
            rooms=[Room(id=rid, name=name) for rid, name in entry.get("rooms", [])],
        )
        db["place"].insert_one(place.model_dump())
        logger.info("Created place %s", entry["name"])

    return {name: db[name].count_documents({}) for name in ("user", "place", "booking")}


def main() -> None:
    parser = argparse.ArgumentParser(description="Load Local Explorer demo data")
    parser.add_argument("--reset", action="store_true", help="delete existing users, places and bookings first")
    args = parser.parse_args()

    setup_logging()
    counts = seed(database.db, reset=args.reset)
    logger.info("Seed complete: %s", counts)
    print(f"Demo accounts: demo@example.com / visitor@example.com (password: {DEMO_PASSWORD})")


if __name__ == "__main__":
    main()
