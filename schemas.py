"""
Database Schemas for Local Explorer

MongoDB collections are defined below using Pydantic models. Each class name is
converted to lowercase for the collection name (User -> "user").

We will use these collections:
- user: promoters and visitors
- place: promoter-owned listings, with embedded reviews and (hotels only) rooms
- booking: visitor bookings of a place, with category-specific details
"""

from datetime import date, datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, StringConstraints, TypeAdapter

Role = Literal["promoter", "visitor"]
Category = Literal["Restaurant", "Hotel", "Cafe", "Mountain", "Visitable Place"]
BookingStatus = Literal["pending", "confirmed", "cancelled"]

CATEGORIES = ("Restaurant", "Hotel", "Cafe", "Mountain", "Visitable Place")
BOOKABLE_CATEGORIES = ("Restaurant", "Hotel", "Mountain")

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    username: NonEmptyStr
    email: EmailStr
    password_hash: str = Field(..., description="BCrypt hash of password")
    role: Role = Field("visitor")
    created_at: datetime = Field(default_factory=utcnow)


class Room(BaseModel):
    id: str = Field(..., min_length=1)
    name: NonEmptyStr
    is_available: bool = True


class Review(BaseModel):
    id: str = Field(..., description="Embedded review id (ObjectId hex)")
    user_id: str = Field(..., description="Reference to user _id (visitor)")
    user_name: str
    rating: int = Field(..., ge=1, le=5)
    comment: NonEmptyStr
    date: datetime = Field(default_factory=utcnow)


class Place(BaseModel):
    name: NonEmptyStr
    description: NonEmptyStr
    category: Category
    address: NonEmptyStr
    latitude: float = 0
    longitude: float = 0
    owner_id: str = Field(..., description="Reference to user _id (promoter)")
    image: Optional[str] = None
    reviews: List[Review] = Field(default_factory=list)
    uploaded_at: datetime = Field(default_factory=utcnow)
    rooms: List[Room] = Field(default_factory=list)
    rooms_version: int = Field(0, description="Bumped on every change to rooms")


# Booking details: one variant per bookable category, tagged by ``category``.

class RestaurantDetails(BaseModel):
    category: Literal["Restaurant"] = "Restaurant"
    reservation_date: date
    check_in_time: str
    table_number: Optional[str] = None


class MountainDetails(BaseModel):
    category: Literal["Mountain"] = "Mountain"
    start_date: date
    end_date: date
    number_of_slots: int


class HotelDetails(BaseModel):
    category: Literal["Hotel"] = "Hotel"
    check_in_date: date
    check_out_date: date
    selected_room_ids: List[str] = Field(default_factory=list)


BookingDetails = Annotated[
    Union[RestaurantDetails, MountainDetails, HotelDetails],
    Field(discriminator="category"),
]

details_adapter = TypeAdapter(BookingDetails)


class Booking(BaseModel):
    place_id: str
    place_name: str
    visitor_id: str
    visitor_name: str
    promoter_id: str
    price: float = Field(0, ge=0)
    duration: int = Field(0, ge=0, description="Minutes")
    booking_date: datetime = Field(default_factory=utcnow)
    scheduled_date: str = Field(..., description="ISO date the booking starts on")
    status: BookingStatus = "pending"
    details: BookingDetails
