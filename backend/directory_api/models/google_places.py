"""Google Places API (legacy Place Details / Text Search) response models"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

GooglePlacesStatus = Literal[
    "OK",
    "ZERO_RESULTS",
    "INVALID_REQUEST",
    "OVER_QUERY_LIMIT",
    "REQUEST_DENIED",
    "NOT_FOUND",
    "UNKNOWN_ERROR",
]

BusinessStatus = Literal["OPERATIONAL", "CLOSED_TEMPORARILY", "CLOSED_PERMANENTLY"]


class _GoogleModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class LatLng(_GoogleModel):
    lat: float
    lng: float


class Geometry(_GoogleModel):
    location: Optional[LatLng] = None


class AddressComponent(_GoogleModel):
    long_name: str = ""
    short_name: str = ""
    types: List[str] = Field(default_factory=list)


class PeriodPoint(_GoogleModel):
    day: int = Field(ge=0, le=6)
    time: str = "0000"


class Period(_GoogleModel):
    open: PeriodPoint
    close: Optional[PeriodPoint] = None


class OpeningHours(_GoogleModel):
    open_now: Optional[bool] = None
    periods: List[Period] = Field(default_factory=list)
    weekday_text: List[str] = Field(default_factory=list)


class EditorialSummary(_GoogleModel):
    overview: Optional[str] = None
    language: Optional[str] = None


class ExternalPlaceResult(_GoogleModel):
    """
    A place as returned by Google, before it is validated or mapped.

    Every field is optional here; the importer decides which ones are
    required so the caller gets a single error naming all missing fields.
    """
    place_id: Optional[str] = None
    name: Optional[str] = None
    formatted_address: Optional[str] = None
    address_components: List[AddressComponent] = Field(default_factory=list)
    geometry: Optional[Geometry] = None
    formatted_phone_number: Optional[str] = None
    international_phone_number: Optional[str] = None
    website: Optional[str] = None
    url: Optional[str] = None
    opening_hours: Optional[OpeningHours] = None
    types: List[str] = Field(default_factory=list)
    price_level: Optional[int] = Field(default=None, ge=0, le=4)
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    business_status: Optional[BusinessStatus] = None
    vicinity: Optional[str] = None
    editorial_summary: Optional[EditorialSummary] = None


class PlaceSearchResult(BaseModel):
    """Simplified search hit returned to the admin UI"""
    model_config = ConfigDict(populate_by_name=True)

    place_id: str = Field(alias="placeId")
    name: str
    address: str
    types: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    business_status: Optional[BusinessStatus] = Field(default=None, alias="businessStatus")
