"""/api/events endpoints"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from directory_api.api.deps import get_stores
from directory_api.core.pagination import build_page, pagination_meta
from directory_api.core.stores import EventQuery, Stores
from directory_api.models.errors import NotFoundError
from directory_api.models.listings import as_utc

router = APIRouter()


@router.get("/events")
async def list_events(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    upcoming: bool = Query(False),
    featured: Optional[bool] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1),
    limit: int = Query(20),
    stores: Stores = Depends(get_stores),
):
    query = EventQuery(
        category=category or None,
        search=search.strip() if search and search.strip() else None,
        featured=featured,
        upcoming_after=datetime.now(timezone.utc) if upcoming else None,
        start_date=as_utc(start_date),
        end_date=as_utc(end_date),
    )
    window = build_page(page, limit)
    events, total = await stores.events.list(query, window.skip, window.per_page)
    return {
        "events": [e.to_api() for e in events],
        "pagination": pagination_meta(total, window),
    }


@router.get("/events/{slug}")
async def get_event(slug: str, stores: Stores = Depends(get_stores)):
    event = await stores.events.find_by_slug(slug)
    if event is None:
        raise NotFoundError("Event not found")
    return {"event": event.to_api()}
