"""In-process datastore for development and tests

Mirrors the MongoDB stores, including unique indexes and the conditional
pending update, without a server.
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from directory_api.core.stores import (
    EventQuery,
    EventStore,
    PlaceQuery,
    PlaceStore,
    Stores,
    SubmissionStore,
)
from directory_api.models.errors import ConflictError
from directory_api.models.listings import Event, Place
from directory_api.models.submission import Submission, SubmissionStatus

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6378.1


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex[:24]


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def _matches_text(search: str, *values: Optional[str]) -> int:
    """Number of search terms found in any of the values (case-insensitive)"""
    haystack = " ".join(v for v in values if v).lower()
    return sum(1 for term in search.lower().split() if term in haystack)


def _sort_key_newest(value: Optional[datetime]) -> float:
    return value.timestamp() if value else 0.0


class MemorySubmissionStore(SubmissionStore):

    def __init__(self):
        self.items: Dict[str, Submission] = {}

    async def insert(self, submission: Submission) -> Submission:
        stored = submission.model_copy(update={"id": _new_id()})
        self.items[stored.id] = stored
        return stored

    async def get(self, submission_id: str) -> Optional[Submission]:
        return self.items.get(submission_id)

    async def update_if_pending(self, submission: Submission) -> Optional[Submission]:
        current = self.items.get(submission.id)
        if current is None or current.status != SubmissionStatus.PENDING:
            return None
        updated = current.model_copy(update={
            "status": submission.status,
            "reviewer_id": submission.reviewer_id,
            "reviewed_at": submission.reviewed_at,
            "review_notes": submission.review_notes,
        })
        self.items[updated.id] = updated
        return updated

    async def list(
        self, status: Optional[str], submission_type: Optional[str], skip: int, limit: int
    ) -> Tuple[List[Submission], int]:
        matches = [
            s for s in self.items.values()
            if (not status or s.status.value == status) and (not submission_type or s.type == submission_type)
        ]
        matches.sort(key=lambda s: s.submitted_at, reverse=True)
        return matches[skip:skip + limit], len(matches)

    async def stats(self) -> Dict:
        stats: Dict = {"total": 0, "pending": 0, "approved": 0, "rejected": 0, "byType": {}}
        for submission in self.items.values():
            stats["total"] += 1
            stats[submission.status.value] += 1
            stats["byType"][submission.type] = stats["byType"].get(submission.type, 0) + 1
        return stats


class MemoryPlaceStore(PlaceStore):

    def __init__(self):
        self.items: Dict[str, Place] = {}

    async def insert(self, place: Place) -> Place:
        for existing in self.items.values():
            if existing.slug == place.slug:
                raise ConflictError("Duplicate value for slug", key="slug")
            if place.google_place_id and existing.google_place_id == place.google_place_id:
                raise ConflictError("Duplicate value for googlePlaceId", key="googlePlaceId")

        now = _now()
        stored = place.model_copy(update={
            "id": _new_id(),
            "created_at": place.created_at or now,
            "updated_at": now,
        })
        self.items[stored.id] = stored
        return stored

    async def find_by_slug(self, slug: str) -> Optional[Place]:
        return next((p for p in self.items.values() if p.slug == slug), None)

    async def find_by_google_place_id(self, google_place_id: str) -> Optional[Place]:
        return next((p for p in self.items.values() if p.google_place_id == google_place_id), None)

    async def list(self, query: PlaceQuery, skip: int, limit: int) -> Tuple[List[Place], int]:
        scored: List[Tuple[int, Place]] = []
        for place in self.items.values():
            if query.categories and place.category not in query.categories:
                continue
            if query.featured is not None and place.featured != query.featured:
                continue
            if query.near:
                lat, lng = query.near
                if distance_km(lat, lng, place.location.lat, place.location.lng) > query.radius_km:
                    continue
            score = 0
            if query.search:
                score = _matches_text(query.search, place.name, place.description)
                if not score:
                    continue
            scored.append((score, place))

        scored.sort(
            key=lambda item: (item[0], item[1].featured, _sort_key_newest(item[1].created_at)),
            reverse=True,
        )
        places = [place for _, place in scored]
        return places[skip:skip + limit], len(places)

    async def apply_rating(self, slug: str, rating: float) -> Optional[Place]:
        place = await self.find_by_slug(slug)
        if place is None:
            return None
        count = place.review_count or 0
        average = place.rating or 0.0
        updated = place.model_copy(update={
            "rating": (average * count + rating) / (count + 1),
            "review_count": count + 1,
            "updated_at": _now(),
        })
        self.items[updated.id] = updated
        return updated


class MemoryEventStore(EventStore):

    def __init__(self):
        self.items: Dict[str, Event] = {}

    async def insert(self, event: Event) -> Event:
        if any(e.slug == event.slug for e in self.items.values()):
            raise ConflictError("Duplicate value for slug", key="slug")
        now = _now()
        stored = event.model_copy(update={
            "id": _new_id(),
            "created_at": event.created_at or now,
            "updated_at": now,
        })
        self.items[stored.id] = stored
        return stored

    async def find_by_slug(self, slug: str) -> Optional[Event]:
        return next((e for e in self.items.values() if e.slug == slug), None)

    async def list(self, query: EventQuery, skip: int, limit: int) -> Tuple[List[Event], int]:
        matches: List[Event] = []
        for event in self.items.values():
            if query.category and event.category != query.category:
                continue
            if query.featured is not None and event.featured != query.featured:
                continue
            if query.upcoming_after and event.start_date < query.upcoming_after:
                continue
            if query.start_date and event.start_date < query.start_date:
                continue
            if query.end_date and event.start_date > query.end_date:
                continue
            if query.search and not _matches_text(
                query.search, event.title, event.description, " ".join(event.tags)
            ):
                continue
            matches.append(event)

        if query.upcoming_after:
            matches.sort(key=lambda e: e.start_date)
        else:
            matches.sort(key=lambda e: (e.featured, e.start_date.timestamp()), reverse=True)
        return matches[skip:skip + limit], len(matches)


class MemoryDatabase:
    """Same lifecycle surface as Database, backed by dicts"""

    def __init__(self):
        self.stores: Optional[Stores] = None

    async def connect(self) -> Stores:
        if self.stores is None:
            self.stores = Stores(
                submissions=MemorySubmissionStore(),
                places=MemoryPlaceStore(),
                events=MemoryEventStore(),
            )
            logger.info("[DATABASE] Using in-memory datastore")
        return self.stores

    async def close(self) -> None:
        self.stores = None
