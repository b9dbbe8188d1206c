"""GET /api/search - combined place and event search"""

import asyncio
from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, Query

from directory_api.api.deps import get_stores
from directory_api.core.stores import EventQuery, PlaceQuery, Stores

router = APIRouter()

MIN_QUERY_LENGTH = 2


@router.get("/search")
async def search(
    q: str = Query(""),
    type: Literal["all", "places", "events", "real-estate"] = Query("all"),
    limit: int = Query(10, ge=1, le=50),
    stores: Stores = Depends(get_stores),
):
    q = q.strip()
    results: Dict[str, Any] = {"places": [], "events": [], "realEstate": []}
    if len(q) < MIN_QUERY_LENGTH:
        return {"query": q, "results": results, "total": 0}

    async def search_places():
        places, _ = await stores.places.list(PlaceQuery(search=q), 0, limit)
        results["places"] = [p.to_api() for p in places]

    async def search_events():
        events, _ = await stores.events.list(EventQuery(search=q), 0, limit)
        results["events"] = [e.to_api() for e in events]

    tasks = []
    if type in ("all", "places"):
        tasks.append(search_places())
    if type in ("all", "events"):
        tasks.append(search_events())
    await asyncio.gather(*tasks)

    return {
        "query": q,
        "results": results,
        "total": len(results["places"]) + len(results["events"]) + len(results["realEstate"]),
    }
