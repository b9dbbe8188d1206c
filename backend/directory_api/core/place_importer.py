"""Google Places import pipeline"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from directory_api.core.google_places import GooglePlacesClient, is_valid_place_id
from directory_api.core.normalization import create_unique_slug
from directory_api.core.place_mapper import PLACEHOLDER_IMAGE, map_external_place
from directory_api.core.stores import PlaceStore
from directory_api.models.errors import ApplicationError, ConfigurationError, ConflictError, ValidationError
from directory_api.models.google_places import PlaceSearchResult
from directory_api.models.listings import Place

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    place: Place
    imported: bool


def parse_location(value: Optional[str]) -> Optional[Dict[str, float]]:
    """Parse a "lat,lng" query parameter"""
    if not value:
        return None
    parts = value.split(",")
    if len(parts) != 2:
        raise ValidationError('Invalid location format. Expected "lat,lng"', fields=["location"])
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValidationError("Invalid location coordinates", fields=["location"])
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise ValidationError("Invalid location coordinates", fields=["location"])
    return {"lat": lat, "lng": lng}


class PlaceImporter:
    """
    Imports a single Google place as a Place, at most once per place id.

    Duplicate detection happens twice: a lookup before fetching, and the
    unique googlePlaceId index on insert for concurrent imports of the same id.
    """

    def __init__(
        self,
        client: GooglePlacesClient,
        places: PlaceStore,
        placeholder_image: str = PLACEHOLDER_IMAGE,
    ):
        self.client = client
        self.places = places
        self.placeholder_image = placeholder_image

    def _require_configured(self) -> None:
        if not self.client.is_configured:
            raise ConfigurationError(
                "Google Places API is not configured",
                hint="Set GOOGLE_MAPS_API_KEY to enable imports.",
            )

    async def import_place(self, place_id: Optional[str]) -> ImportResult:
        self._require_configured()

        if not isinstance(place_id, str) or not place_id.strip():
            raise ValidationError("placeId is required", fields=["placeId"])
        place_id = place_id.strip()
        if not is_valid_place_id(place_id):
            raise ValidationError("Invalid place ID format", fields=["placeId"])

        existing = await self.places.find_by_google_place_id(place_id)
        if existing is not None:
            logger.info(f"[IMPORT] {place_id} already imported as {existing.slug}")
            return ImportResult(place=existing, imported=False)

        result = await self.client.fetch_place_details(place_id)
        # Raises before anything is written if the result is unusable
        place = map_external_place(result, self.placeholder_image)
        place = place.model_copy(update={"google_place_id": place_id})

        try:
            created = await self._insert(place)
        except ConflictError as e:
            winner = await self.places.find_by_google_place_id(place_id)
            if winner is None:
                logger.error(f"[IMPORT] Conflict on {e.key} for {place_id} but no existing place found")
                raise ApplicationError("Failed to import place") from e
            logger.info(f"[IMPORT] {place_id} imported concurrently, returning existing place")
            return ImportResult(place=winner, imported=False)

        logger.info(f"[IMPORT] Imported {place_id} as {created.slug}")
        return ImportResult(place=created, imported=True)

    async def _insert(self, place: Place) -> Place:
        try:
            return await self.places.insert(place)
        except ConflictError as e:
            if e.key != "slug":
                raise
            return await self.places.insert(
                place.model_copy(update={"slug": create_unique_slug(place.slug)})
            )

    async def search(self, query: Optional[str], location: Optional[str] = None) -> List[PlaceSearchResult]:
        """Text search against Google; nothing is persisted"""
        self._require_configured()

        if not query or not query.strip():
            raise ValidationError("Query parameter is required", fields=["query"])

        results = await self.client.search_places(query.strip(), parse_location(location))
        return [
            PlaceSearchResult(
                place_id=r.place_id,
                name=r.name,
                address=r.formatted_address or r.vicinity or "",
                types=r.types,
                rating=r.rating,
                business_status=r.business_status,
            )
            for r in results
            if r.place_id and r.name
        ]
