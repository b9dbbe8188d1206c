"""/api/places endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Security

from directory_api.api.deps import get_stores
from directory_api.core.auth import Identity, require_identity
from directory_api.core.pagination import build_page, pagination_meta
from directory_api.core.place_importer import parse_location
from directory_api.core.stores import PlaceQuery, Stores
from directory_api.models.errors import NotFoundError
from directory_api.models.schemas import RatingRequest

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_SEARCH_LENGTH = 2


@router.get("/places")
async def list_places(
    category: Optional[str] = Query(None, description="Comma-separated categories"),
    search: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    near: Optional[str] = Query(None, description='"lat,lng"'),
    radius_km: float = Query(10.0, alias="radiusKm", gt=0),
    page: int = Query(1),
    limit: int = Query(20),
    stores: Stores = Depends(get_stores),
):
    location = parse_location(near)
    query = PlaceQuery(
        categories=[c.strip() for c in (category or "").split(",") if c.strip()],
        search=search.strip() if search and len(search.strip()) >= MIN_SEARCH_LENGTH else None,
        featured=featured,
        near=(location["lat"], location["lng"]) if location else None,
        radius_km=radius_km,
    )
    window = build_page(page, limit)
    places, total = await stores.places.list(query, window.skip, window.per_page)
    return {
        "places": [p.to_api() for p in places],
        "pagination": pagination_meta(total, window),
    }


@router.get("/places/{slug}")
async def get_place(slug: str, stores: Stores = Depends(get_stores)):
    place = await stores.places.find_by_slug(slug)
    if place is None:
        raise NotFoundError("Place not found")
    return {"place": place.to_api()}


@router.post("/places/{slug}/ratings")
async def rate_place(
    slug: str,
    request: RatingRequest,
    identity: Identity = Security(require_identity),
    stores: Stores = Depends(get_stores),
):
    place = await stores.places.apply_rating(slug, request.rating)
    if place is None:
        raise NotFoundError("Place not found")
    logger.info(f"Place {slug} rated {request.rating} by {identity.id}")
    return {"place": place.to_api()}
