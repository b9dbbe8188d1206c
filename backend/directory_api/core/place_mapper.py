"""Maps Google Places results onto the internal Place model (no I/O)"""

import logging
from typing import Dict, List, Optional

from directory_api.core.normalization import (
    create_unique_slug,
    format_type_name,
    generate_slug,
    parse_address,
    parse_hours,
)
from directory_api.models.errors import ApplicationError, BusinessNotOperationalError, ValidationError
from directory_api.models.google_places import ExternalPlaceResult
from directory_api.models.listings import ContactInfo, Images, Location, Place

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "/images/placeholder-place.jpg"
DEFAULT_CATEGORY = "service"

# Checked in the order the place lists its types; first match wins
GOOGLE_TYPE_TO_CATEGORY: Dict[str, str] = {
    # Food & drink
    "restaurant": "restaurant",
    "food": "restaurant",
    "meal_delivery": "restaurant",
    "meal_takeaway": "restaurant",
    "cafe": "cafe",
    "bakery": "bakery",
    "bar": "bar",
    "night_club": "nightclub",
    # Shopping
    "store": "shopping",
    "shopping_mall": "shopping",
    "clothing_store": "shopping",
    "book_store": "shopping",
    "electronics_store": "shopping",
    "furniture_store": "shopping",
    "hardware_store": "shopping",
    "home_goods_store": "shopping",
    "jewelry_store": "shopping",
    "shoe_store": "shopping",
    "supermarket": "shopping",
    "convenience_store": "shopping",
    "liquor_store": "shopping",
    # Attractions
    "tourist_attraction": "attraction",
    "museum": "attraction",
    "art_gallery": "attraction",
    "park": "attraction",
    "amusement_park": "attraction",
    "zoo": "attraction",
    "aquarium": "attraction",
    # Activities
    "gym": "activity",
    "bowling_alley": "activity",
    "movie_theater": "activity",
    "spa": "activity",
    "stadium": "activity",
    # Services
    "bank": "service",
    "atm": "service",
    "post_office": "service",
    "hospital": "service",
    "pharmacy": "service",
    "doctor": "service",
    "dentist": "service",
    "lawyer": "service",
    "real_estate_agency": "service",
    "insurance_agency": "service",
    "accounting": "service",
    "car_dealer": "service",
    "car_rental": "service",
    "car_repair": "service",
    "car_wash": "service",
    "gas_station": "service",
    "parking": "service",
    "lodging": "service",
    "travel_agency": "service",
}

GENERIC_TYPES = frozenset({"establishment", "point_of_interest", "locality", "political"})

PRICE_LEVEL_MAP: Dict[int, str] = {
    0: "$",  # free
    1: "$",
    2: "$$",
    3: "$$$",
    4: "$$$$",
}


def map_category(types: Optional[List[str]]) -> str:
    """Return the category of the first recognized Google type, else "service"."""
    for place_type in types or []:
        category = GOOGLE_TYPE_TO_CATEGORY.get(place_type)
        if category:
            return category
    return DEFAULT_CATEGORY


def extract_subcategories(types: Optional[List[str]], primary_category: str) -> List[str]:
    """Readable labels for the types that are neither generic nor part of the primary category."""
    primary_types = {t for t, cat in GOOGLE_TYPE_TO_CATEGORY.items() if cat == primary_category}
    return [
        format_type_name(t)
        for t in types or []
        if t not in GENERIC_TYPES and t not in primary_types
    ]


def map_price_level(price_level: Optional[int]) -> Optional[str]:
    if price_level is None:
        return None
    return PRICE_LEVEL_MAP.get(price_level)


def extract_location(result: ExternalPlaceResult) -> Location:
    location = result.geometry.location if result.geometry else None
    if location is None:
        raise ValidationError("Missing required fields: geometry.location", fields=["geometry.location"])
    return Location(lat=location.lat, lng=location.lng)


def build_contact_info(result: ExternalPlaceResult) -> ContactInfo:
    return ContactInfo(
        phone=result.formatted_phone_number or result.international_phone_number,
        website=result.website,
    )


def generate_description(result: ExternalPlaceResult, category: str, locality: Optional[str] = None) -> str:
    """Editorial summary when Google has one, otherwise a generated sentence."""
    if result.editorial_summary and result.editorial_summary.overview:
        return result.editorial_summary.overview

    if not locality and result.formatted_address:
        segments = [s.strip() for s in result.formatted_address.split(",")]
        locality = segments[1] if len(segments) > 1 else ""

    description = f"{result.name} is a {format_type_name(category).lower()}"
    if locality:
        description += f" located in {locality}"
    if result.rating:
        description += f". Rated {result.rating} out of 5"
        if result.user_ratings_total:
            description += f" based on {result.user_ratings_total} reviews"
    return description + "."


def validate_external_place(result: ExternalPlaceResult) -> None:
    """Raise ValidationError naming every missing required field, or for out-of-range coordinates."""
    missing: List[str] = []
    if not result.name or not result.name.strip():
        missing.append("name")
    if not result.formatted_address or not result.formatted_address.strip():
        missing.append("formatted_address")
    if result.geometry is None or result.geometry.location is None:
        missing.append("geometry.location")

    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

    lat = result.geometry.location.lat
    lng = result.geometry.location.lng
    if not -90 <= lat <= 90:
        raise ValidationError(f"Invalid latitude: {lat}", fields=["geometry.location.lat"])
    if not -180 <= lng <= 180:
        raise ValidationError(f"Invalid longitude: {lng}", fields=["geometry.location.lng"])


def is_operational(business_status: Optional[str]) -> bool:
    """Places without a status are assumed to be open"""
    return business_status is None or business_status == "OPERATIONAL"


def map_external_place(result: ExternalPlaceResult, placeholder_image: str = PLACEHOLDER_IMAGE) -> Place:
    """
    Transform a Google Places result into a new Place.

    Raises ValidationError for missing/invalid fields and
    BusinessNotOperationalError for closed businesses.
    """
    validate_external_place(result)

    if not is_operational(result.business_status):
        raise BusinessNotOperationalError(
            f"Business is not operational (status: {result.business_status})"
        )

    category = map_category(result.types)
    address = parse_address(
        [c.model_dump() for c in result.address_components],
        result.formatted_address,
    )
    opening_hours = result.opening_hours.model_dump() if result.opening_hours else None

    return Place(
        google_place_id=result.place_id,
        slug=create_unique_slug(generate_slug(result.name)),
        name=result.name.strip(),
        category=category,
        subcategories=extract_subcategories(result.types, category),
        description=generate_description(result, category, address.get("city")),
        address=address,
        location=extract_location(result),
        contact=build_contact_info(result),
        hours=parse_hours(opening_hours),
        price_range=map_price_level(result.price_level),
        rating=result.rating,
        review_count=result.user_ratings_total,
        images=Images(main=placeholder_image, gallery=[]),
        features=[],
        amenities=[],
        verified=False,
        featured=False,
    )


def map_external_places(results: List[ExternalPlaceResult], placeholder_image: str = PLACEHOLDER_IMAGE) -> List[Place]:
    """Map many results, skipping any that fail validation or are closed"""
    places: List[Place] = []
    for result in results:
        try:
            places.append(map_external_place(result, placeholder_image))
        except ApplicationError as e:
            logger.info(f"[IMPORT] Skipping {result.place_id or result.name!r}: {e.message}")
    return places
