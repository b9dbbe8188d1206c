"""User submission models

A submission carries a draft listing in ``data``; the draft model is chosen by
the submission ``type`` so a place proposal is always checked as a place.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field, field_validator, model_validator

from directory_api.models.listings import (
    Address,
    CamelModel,
    ContactInfo,
    DayHours,
    DayName,
    EventCategory,
    Images,
    Location,
    PlaceCategory,
    PriceRange,
    TicketInfo,
    as_utc,
)

SubmissionType = Literal["place", "event", "real-estate"]


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _split_tags(value: Any) -> Any:
    """Accept comma-separated strings from simple forms"""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class PlaceDraft(CamelModel):
    """Place-shaped submission payload; only the name is mandatory"""
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    category: Optional[PlaceCategory] = None
    subcategories: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    address: Address = Field(default_factory=Address)
    location: Optional[Location] = None
    contact: ContactInfo = Field(default_factory=ContactInfo)
    hours: Optional[Dict[DayName, DayHours]] = None
    price_range: Optional[PriceRange] = None
    images: Optional[Images] = None
    features: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("subcategories", "features", "amenities", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        return _split_tags(v)


class EventLocationDraft(CamelModel):
    name: Optional[str] = None
    address: Address = Field(default_factory=Address)
    coordinates: Optional[Location] = None


class OrganizerDraft(CamelModel):
    name: Optional[str] = None
    contact: Optional[ContactInfo] = None


class EventDraft(CamelModel):
    """Event-shaped submission payload; only the title is mandatory"""
    title: str = Field(min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    category: Optional[EventCategory] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: EventLocationDraft = Field(default_factory=EventLocationDraft)
    organizer: OrganizerDraft = Field(default_factory=OrganizerDraft)
    ticket_info: Optional[TicketInfo] = None
    images: Optional[Images] = None
    tags: List[str] = Field(default_factory=list)
    max_attendees: Optional[int] = Field(default=None, ge=0)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> Any:
        v = _split_tags(v)
        if isinstance(v, list):
            return [t.lower() for t in v if isinstance(t, str)]
        return v


class RealEstateDraft(CamelModel):
    """Real-estate listing payload"""
    title: str = Field(min_length=1)
    description: Optional[str] = None
    property_type: Optional[Literal["house", "condo", "apartment", "townhouse", "land", "commercial"]] = None
    listing_type: Optional[Literal["sale", "rent"]] = None
    price: Optional[float] = Field(default=None, ge=0)
    address: Address = Field(default_factory=Address)
    location: Optional[Location] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    features: List[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("features", mode="before")
    @classmethod
    def split_features(cls, v: Any) -> Any:
        return _split_tags(v)


DRAFT_MODELS = {
    "place": PlaceDraft,
    "event": EventDraft,
    "real-estate": RealEstateDraft,
}

SubmissionData = Union[PlaceDraft, EventDraft, RealEstateDraft]


class SubmittedBy(CamelModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v.lower()


class Submission(CamelModel):
    """A listing proposal awaiting or past moderation"""
    id: Optional[str] = None
    type: SubmissionType
    data: SubmissionData
    submitted_by: SubmittedBy
    status: SubmissionStatus = SubmissionStatus.PENDING
    review_notes: Optional[str] = None
    reviewer_id: Optional[str] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def parse_data_for_type(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        draft_model = DRAFT_MODELS.get(values.get("type"))
        data = values.get("data")
        if draft_model is not None and not isinstance(data, draft_model):
            values = dict(values)
            values["data"] = draft_model.model_validate(data if data is not None else {})
        return values

    @model_validator(mode="after")
    def check_review_fields(self) -> "Submission":
        if (self.status == SubmissionStatus.PENDING) != (self.reviewed_at is None):
            raise ValueError("reviewedAt must be set exactly when the submission has been reviewed")
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == SubmissionStatus.PENDING
