"""Google Places API client - legacy Place Details and Text Search over HTTP"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from directory_api.models.errors import ConfigurationError, ExternalServiceError
from directory_api.models.google_places import ExternalPlaceResult

logger = logging.getLogger(__name__)

# Fields the mapper consumes; a field mask keeps the billed SKU small
PLACE_DETAILS_FIELDS = [
    "place_id",
    "name",
    "formatted_address",
    "address_components",
    "geometry",
    "formatted_phone_number",
    "international_phone_number",
    "website",
    "url",
    "opening_hours",
    "types",
    "price_level",
    "rating",
    "user_ratings_total",
    "business_status",
    "editorial_summary",
    "vicinity",
]

RETRYABLE_STATUS_CODES = (429, 500, 503)
RETRY_BACKOFF_SECONDS = 0.7

_PLACE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{20,512}$")

# HTTP status -> Google status, for failures that never produced a JSON body
_HTTP_STATUS_TO_GOOGLE = {
    400: "INVALID_REQUEST",
    403: "REQUEST_DENIED",
    404: "NOT_FOUND",
    429: "OVER_QUERY_LIMIT",
}


def is_valid_place_id(place_id: Optional[str]) -> bool:
    """Google place ids are long tokens of letters, digits, '_' and '-'"""
    return bool(place_id) and bool(_PLACE_ID_RE.match(place_id))


class GooglePlacesClient:
    """
    Fetches Place Details and Text Search results from the Google Places API.

    Responses carry a ``status`` field; anything other than OK (or
    ZERO_RESULTS for searches) becomes an ExternalServiceError carrying that
    status so the API layer can pick the right HTTP code.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api/place",
        timeout: float = 20.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            logger.warning("GOOGLE_MAPS_API_KEY not set - Google Places import is disabled")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError(
                "Google Maps API key not configured",
                hint="Set GOOGLE_MAPS_API_KEY in the environment or .env file.",
            )

    async def _get(self, path: str, params: Dict[str, Any]) -> httpx.Response:
        """HTTP GET with retry logic for 429/5xx errors"""
        client = await self._get_client()
        url = f"{self.base_url}/{path}"
        params = {**params, "key": self.api_key}

        for attempt in range(self.max_retries):
            try:
                response = await client.get(url, params=params)
            except httpx.TransportError as e:
                if attempt == self.max_retries - 1:
                    raise ExternalServiceError(f"Google Places API unreachable: {e}", "UNKNOWN_ERROR") from e
                logger.warning(f"[GOOGLE FETCH] Transport error on attempt {attempt + 1}: {e}")
                await asyncio.sleep(RETRY_BACKOFF_SECONDS * (attempt + 1))
                continue

            if response.status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries - 1:
                logger.warning(
                    f"[GOOGLE FETCH] HTTP {response.status_code} on attempt {attempt + 1}, retrying"
                )
                await asyncio.sleep(RETRY_BACKOFF_SECONDS * (attempt + 1))
                continue

            if response.status_code >= 400:
                status = _HTTP_STATUS_TO_GOOGLE.get(response.status_code, "UNKNOWN_ERROR")
                logger.error(f"[GOOGLE FETCH] HTTP error: {response.status_code} - {response.text[:200]}")
                raise ExternalServiceError(
                    f"Google Places API error: HTTP {response.status_code}", status
                )
            return response

        raise ExternalServiceError("Google Places API retries exhausted", "UNKNOWN_ERROR")

    @staticmethod
    def _payload(response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalServiceError("Google Places API returned invalid JSON", "UNKNOWN_ERROR") from e
        if not isinstance(payload, dict):
            raise ExternalServiceError("Google Places API returned an unexpected payload", "UNKNOWN_ERROR")
        return payload

    @staticmethod
    def _raise_for_status(payload: Dict[str, Any], allowed: tuple) -> str:
        status = payload.get("status") or "UNKNOWN_ERROR"
        if status == "OVER_DAILY_LIMIT":
            status = "OVER_QUERY_LIMIT"
        if status not in allowed:
            message = payload.get("error_message") or f"Google Places API error: {status}"
            raise ExternalServiceError(message, status)
        return status

    async def fetch_place_details(self, place_id: str) -> ExternalPlaceResult:
        """Fetch full details for a single place id"""
        self._require_key()
        if not place_id or not place_id.strip():
            raise ExternalServiceError("Invalid place ID provided", "INVALID_REQUEST")

        logger.info(f"[GOOGLE FETCH] Fetching place details for place_id: {place_id}")
        response = await self._get(
            "details/json",
            {"place_id": place_id.strip(), "fields": ",".join(PLACE_DETAILS_FIELDS)},
        )
        payload = self._payload(response)
        self._raise_for_status(payload, ("OK",))

        raw = payload.get("result") or {}
        try:
            result = ExternalPlaceResult.model_validate(raw)
        except PydanticValidationError as e:
            logger.error(f"[GOOGLE FETCH] Unexpected result shape for {place_id}: {e}")
            raise ExternalServiceError("Google Places API returned an unexpected result", "UNKNOWN_ERROR") from e

        if not result.place_id:
            result.place_id = place_id.strip()
        logger.info(f"[GOOGLE FETCH] Got place {result.name!r} ({result.business_status or 'no status'})")
        return result

    async def search_places(
        self,
        query: str,
        location: Optional[Dict[str, float]] = None,
        radius: Optional[int] = None,
    ) -> List[ExternalPlaceResult]:
        """Text search; ZERO_RESULTS is an empty list, not an error"""
        self._require_key()
        if not query or not query.strip():
            raise ExternalServiceError("Search query is required", "INVALID_REQUEST")

        params: Dict[str, Any] = {"query": query.strip()}
        if location:
            params["location"] = f"{location['lat']},{location['lng']}"
        if radius:
            params["radius"] = radius

        logger.info(f"[GOOGLE FETCH] Text search: {query.strip()!r}")
        response = await self._get("textsearch/json", params)
        payload = self._payload(response)
        status = self._raise_for_status(payload, ("OK", "ZERO_RESULTS"))
        if status == "ZERO_RESULTS":
            return []

        results: List[ExternalPlaceResult] = []
        for raw in payload.get("results") or []:
            try:
                results.append(ExternalPlaceResult.model_validate(raw))
            except PydanticValidationError as e:
                logger.warning(f"[GOOGLE FETCH] Skipping malformed search result: {e}")
        return results
