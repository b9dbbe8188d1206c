"""/api/import/google-places endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Security
from fastapi.responses import JSONResponse

from directory_api.api.deps import get_place_importer
from directory_api.core.auth import Identity, require_moderator
from directory_api.core.place_importer import PlaceImporter
from directory_api.models.errors import ApplicationError, ExternalServiceError
from directory_api.models.schemas import ImportRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/import/google-places")
async def import_google_place(
    request: ImportRequest,
    identity: Identity = Security(require_moderator),
    importer: PlaceImporter = Depends(get_place_importer),
) -> JSONResponse:
    """
    Import a place by Google place id.

    201 when the place was created, 200 when it already existed.
    """
    logger.info(f"[IMPORT] {identity.id} importing {request.place_id!r}")
    result = await importer.import_place(request.place_id)

    body = {
        "success": True,
        "place": result.place.to_api(),
        "imported": result.imported,
    }
    if not result.imported:
        body["message"] = "Place already exists"
    return JSONResponse(content=body, status_code=201 if result.imported else 200)


@router.get("/import/google-places/search")
async def search_google_places(
    query: Optional[str] = Query(None),
    location: Optional[str] = Query(None, description='"lat,lng" to bias results'),
    identity: Identity = Security(require_moderator),
    importer: PlaceImporter = Depends(get_place_importer),
):
    """
    Search Google Places for import candidates.

    Failures keep the same envelope as success, with an empty results list.
    """
    try:
        results = await importer.search(query, location)
    except ApplicationError as e:
        status_code = e.http_status
        # Text search answers NOT_FOUND only when something went wrong upstream
        if isinstance(e, ExternalServiceError) and e.status == "NOT_FOUND":
            status_code = 500
        logger.info(f"[IMPORT] search {query!r} failed: {e.code.value} - {e.message}")
        return JSONResponse(content={**e.model_dump(), "results": []}, status_code=status_code)
    return {"results": [r.model_dump(by_alias=True, exclude_none=True) for r in results]}
