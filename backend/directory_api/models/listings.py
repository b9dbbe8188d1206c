"""Place and event listing models"""

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


PlaceCategory = Literal[
    "restaurant", "bar", "nightclub", "cafe", "bakery",
    "shopping", "attraction", "activity", "service",
]
EventCategory = Literal[
    "music", "art", "food", "sports", "community", "education", "business", "other",
]
DayName = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
PriceRange = Literal["$", "$$", "$$$", "$$$$"]
TicketAvailability = Literal["available", "limited", "sold-out"]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Location(CamelModel):
    """Geographic coordinates"""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Address(CamelModel):
    street: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""
    country: str = ""


class SocialMedia(CamelModel):
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None


class ContactInfo(CamelModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    social_media: Optional[SocialMedia] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else None


class DayHours(CamelModel):
    open: str = Field(pattern=r"^\d{2}:\d{2}$")
    close: str = Field(pattern=r"^\d{2}:\d{2}$")


class Images(CamelModel):
    main: str
    gallery: List[str] = Field(default_factory=list)


class Place(CamelModel):
    """A business or point of interest"""
    id: Optional[str] = None
    slug: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: PlaceCategory
    subcategories: List[str] = Field(default_factory=list)
    description: str = Field(min_length=1)
    address: Address
    location: Location
    contact: ContactInfo = Field(default_factory=ContactInfo)
    hours: Optional[Dict[DayName, DayHours]] = None
    price_range: Optional[PriceRange] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    review_count: Optional[int] = Field(default=None, ge=0)
    images: Images
    features: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    verified: bool = False
    featured: bool = False
    google_place_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventLocation(CamelModel):
    name: str = Field(min_length=1)
    address: Address
    coordinates: Location


class Organizer(CamelModel):
    name: str = Field(min_length=1)
    contact: Optional[ContactInfo] = None


class TicketInfo(CamelModel):
    price: Optional[float] = Field(default=None, ge=0)
    url: Optional[str] = None
    availability: Optional[TicketAvailability] = None


class Event(CamelModel):
    """A dated happening at a venue"""
    id: Optional[str] = None
    slug: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: EventCategory
    start_date: datetime
    end_date: Optional[datetime] = None
    start_time: str = Field(min_length=1)
    end_time: Optional[str] = None
    location: EventLocation
    organizer: Organizer
    ticket_info: Optional[TicketInfo] = None
    images: Images
    tags: List[str] = Field(default_factory=list)
    max_attendees: Optional[int] = Field(default=None, ge=0)
    current_attendees: int = Field(default=0, ge=0)
    verified: bool = False
    featured: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)
