"""
MongoDB access.

Collections (see schemas.py): user, place, booking. Reviews and hotel rooms
are embedded in their place document.
"""
import logging
from typing import Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import settings
from errors import NotFound

logger = logging.getLogger(__name__)

# MongoClient connects lazily, so importing this module never touches the network
client: MongoClient = MongoClient(settings.database_url, tz_aware=True)
db: Database = client[settings.database_name]


def get_db() -> Database:
    """FastAPI dependency returning the application database."""
    return db


def ensure_indexes(database: Database) -> None:
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["place"].create_index([("owner_id", ASCENDING)])
    database["place"].create_index([("category", ASCENDING)])
    database["place"].create_index([("uploaded_at", DESCENDING)])
    database["booking"].create_index([("visitor_id", ASCENDING)])
    database["booking"].create_index([("promoter_id", ASCENDING)])
    database["booking"].create_index([("place_id", ASCENDING)])
    logger.info("Indexes ensured on %s", database.name)


def to_obj_id(id_str: str, resource: str = "Resource") -> ObjectId:
    """Parse a path id; malformed ids are reported as a missing resource."""
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise NotFound(f"{resource} not found")


def sanitize(doc: Optional[Dict]) -> Optional[Dict]:
    if not doc:
        return doc
    d = {**doc}
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return d
