"""Datastore interfaces for submissions, places and events

Both backends (MongoDB and in-memory) implement these. Unique key
violations surface as ConflictError with the offending key name.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from directory_api.models.listings import Event, Place
from directory_api.models.submission import Submission


@dataclass
class PlaceQuery:
    categories: List[str] = field(default_factory=list)
    search: Optional[str] = None
    featured: Optional[bool] = None
    near: Optional[Tuple[float, float]] = None  # (lat, lng)
    radius_km: float = 10.0


@dataclass
class EventQuery:
    category: Optional[str] = None
    search: Optional[str] = None
    featured: Optional[bool] = None
    upcoming_after: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SubmissionStore(ABC):

    @abstractmethod
    async def insert(self, submission: Submission) -> Submission:
        """Persist a new submission and return it with its id"""

    @abstractmethod
    async def get(self, submission_id: str) -> Optional[Submission]:
        """None for unknown or malformed ids"""

    @abstractmethod
    async def update_if_pending(self, submission: Submission) -> Optional[Submission]:
        """
        Write the review fields of ``submission`` only if the stored copy is
        still pending. Returns the stored result, or None if the id is unknown
        or the submission was already reviewed.
        """

    @abstractmethod
    async def list(
        self, status: Optional[str], submission_type: Optional[str], skip: int, limit: int
    ) -> Tuple[List[Submission], int]:
        """Newest first, with the total count for the filter"""

    @abstractmethod
    async def stats(self) -> Dict:
        """Counts by status and by type"""


class PlaceStore(ABC):

    @abstractmethod
    async def insert(self, place: Place) -> Place:
        ...

    @abstractmethod
    async def find_by_slug(self, slug: str) -> Optional[Place]:
        ...

    @abstractmethod
    async def find_by_google_place_id(self, google_place_id: str) -> Optional[Place]:
        ...

    @abstractmethod
    async def list(self, query: PlaceQuery, skip: int, limit: int) -> Tuple[List[Place], int]:
        """Search relevance first when searching, then featured, then newest"""

    @abstractmethod
    async def apply_rating(self, slug: str, rating: float) -> Optional[Place]:
        """Fold one rating into the running average and bump reviewCount"""


class EventStore(ABC):

    @abstractmethod
    async def insert(self, event: Event) -> Event:
        ...

    @abstractmethod
    async def find_by_slug(self, slug: str) -> Optional[Event]:
        ...

    @abstractmethod
    async def list(self, query: EventQuery, skip: int, limit: int) -> Tuple[List[Event], int]:
        """Soonest first for upcoming queries, otherwise featured then latest"""


@dataclass
class Stores:
    submissions: SubmissionStore
    places: PlaceStore
    events: EventStore
