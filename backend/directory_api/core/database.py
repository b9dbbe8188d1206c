"""MongoDB datastore - client lifecycle, indexes and collection stores"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, GEOSPHERE, TEXT, AsyncMongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, OperationFailure

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

# Mean equatorial radius used by $centerSphere
EARTH_RADIUS_KM = 6378.1

# Mongo reports a missing text index as IndexNotFound
_INDEX_NOT_FOUND = 27


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _conflict_from(exc: DuplicateKeyError) -> ConflictError:
    key_pattern = (exc.details or {}).get("keyPattern") or {}
    key = next(iter(key_pattern), None)
    return ConflictError(f"Duplicate value for {key or 'unique key'}", key=key)


def _with_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    doc.pop("score", None)
    return doc


def _regex_any(term: str) -> Dict[str, Any]:
    return {"$regex": re.escape(term), "$options": "i"}


# ============================================================================
# Document conversion
# ============================================================================

def place_to_document(place: Place) -> Dict[str, Any]:
    doc = place.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
    doc["location"] = {"type": "Point", "coordinates": [place.location.lng, place.location.lat]}
    return doc


def document_to_place(doc: Dict[str, Any]) -> Place:
    doc = _with_id(doc)
    coordinates = (doc.get("location") or {}).get("coordinates")
    if coordinates:
        doc["location"] = {"lat": coordinates[1], "lng": coordinates[0]}
    return Place.model_validate(doc)


def event_to_document(event: Event) -> Dict[str, Any]:
    return event.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)


def document_to_event(doc: Dict[str, Any]) -> Event:
    return Event.model_validate(_with_id(doc))


def submission_to_document(submission: Submission) -> Dict[str, Any]:
    doc = submission.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
    doc["status"] = submission.status.value
    return doc


def document_to_submission(doc: Dict[str, Any]) -> Submission:
    return Submission.model_validate(_with_id(doc))


# ============================================================================
# Stores
# ============================================================================

class MongoSubmissionStore(SubmissionStore):

    def __init__(self, collection):
        self.collection = collection

    async def insert(self, submission: Submission) -> Submission:
        result = await self.collection.insert_one(submission_to_document(submission))
        return submission.model_copy(update={"id": str(result.inserted_id)})

    async def get(self, submission_id: str) -> Optional[Submission]:
        oid = _object_id(submission_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return document_to_submission(doc) if doc else None

    async def update_if_pending(self, submission: Submission) -> Optional[Submission]:
        oid = _object_id(submission.id)
        if oid is None:
            return None
        review_fields = {
            "status": submission.status.value,
            "reviewerId": submission.reviewer_id,
            "reviewedAt": submission.reviewed_at,
            "reviewNotes": submission.review_notes,
        }
        doc = await self.collection.find_one_and_update(
            {"_id": oid, "status": SubmissionStatus.PENDING.value},
            {"$set": {k: v for k, v in review_fields.items() if v is not None}},
            return_document=ReturnDocument.AFTER,
        )
        return document_to_submission(doc) if doc else None

    async def list(
        self, status: Optional[str], submission_type: Optional[str], skip: int, limit: int
    ) -> Tuple[List[Submission], int]:
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if submission_type:
            query["type"] = submission_type

        cursor = self.collection.find(query).sort("submittedAt", DESCENDING).skip(skip).limit(limit)
        docs = await cursor.to_list(length=None)
        total = await self.collection.count_documents(query)
        return [document_to_submission(d) for d in docs], total

    async def stats(self) -> Dict:
        pipeline = [{"$group": {"_id": {"status": "$status", "type": "$type"}, "count": {"$sum": 1}}}]
        cursor = await self.collection.aggregate(pipeline)
        rows = await cursor.to_list(length=None)

        stats: Dict[str, Any] = {"total": 0, "pending": 0, "approved": 0, "rejected": 0, "byType": {}}
        for row in rows:
            status = row["_id"].get("status")
            submission_type = row["_id"].get("type")
            stats["total"] += row["count"]
            if status in stats:
                stats[status] += row["count"]
            stats["byType"][submission_type] = stats["byType"].get(submission_type, 0) + row["count"]
        return stats


class MongoPlaceStore(PlaceStore):

    def __init__(self, collection):
        self.collection = collection

    async def insert(self, place: Place) -> Place:
        now = _now()
        place = place.model_copy(update={
            "created_at": place.created_at or now,
            "updated_at": now,
        })
        try:
            result = await self.collection.insert_one(place_to_document(place))
        except DuplicateKeyError as e:
            raise _conflict_from(e) from e
        return place.model_copy(update={"id": str(result.inserted_id)})

    async def find_by_slug(self, slug: str) -> Optional[Place]:
        doc = await self.collection.find_one({"slug": slug})
        return document_to_place(doc) if doc else None

    async def find_by_google_place_id(self, google_place_id: str) -> Optional[Place]:
        doc = await self.collection.find_one({"googlePlaceId": google_place_id})
        return document_to_place(doc) if doc else None

    @staticmethod
    def _filter(query: PlaceQuery) -> Dict[str, Any]:
        mongo_query: Dict[str, Any] = {}
        if query.categories:
            mongo_query["category"] = {"$in": query.categories}
        if query.featured is not None:
            mongo_query["featured"] = query.featured
        if query.near:
            lat, lng = query.near
            # $geoWithin works with count_documents, $near does not
            mongo_query["location"] = {
                "$geoWithin": {"$centerSphere": [[lng, lat], query.radius_km / EARTH_RADIUS_KM]}
            }
        return mongo_query

    async def list(self, query: PlaceQuery, skip: int, limit: int) -> Tuple[List[Place], int]:
        base = self._filter(query)
        sort: List[Tuple[str, Any]] = [("featured", DESCENDING), ("createdAt", DESCENDING)]

        if query.search:
            text_query = {**base, "$text": {"$search": query.search}}
            try:
                cursor = (
                    self.collection.find(text_query, {"score": {"$meta": "textScore"}})
                    .sort([("score", {"$meta": "textScore"})] + sort)
                    .skip(skip)
                    .limit(limit)
                )
                docs = await cursor.to_list(length=None)
                total = await self.collection.count_documents(text_query)
                return [document_to_place(d) for d in docs], total
            except OperationFailure as e:
                if e.code != _INDEX_NOT_FOUND:
                    raise
                logger.warning("[DATABASE] places text index missing, falling back to regex search")
            base = {**base, "$or": [{"name": _regex_any(query.search)}, {"description": _regex_any(query.search)}]}

        cursor = self.collection.find(base).sort(sort).skip(skip).limit(limit)
        docs = await cursor.to_list(length=None)
        total = await self.collection.count_documents(base)
        return [document_to_place(d) for d in docs], total

    async def apply_rating(self, slug: str, rating: float) -> Optional[Place]:
        count = {"$ifNull": ["$reviewCount", 0]}
        average = {"$ifNull": ["$rating", 0]}
        doc = await self.collection.find_one_and_update(
            {"slug": slug},
            [{"$set": {
                "rating": {"$divide": [
                    {"$add": [{"$multiply": [average, count]}, rating]},
                    {"$add": [count, 1]},
                ]},
                "reviewCount": {"$add": [count, 1]},
                "updatedAt": _now(),
            }}],
            return_document=ReturnDocument.AFTER,
        )
        return document_to_place(doc) if doc else None


class MongoEventStore(EventStore):

    def __init__(self, collection):
        self.collection = collection

    async def insert(self, event: Event) -> Event:
        now = _now()
        event = event.model_copy(update={
            "created_at": event.created_at or now,
            "updated_at": now,
        })
        try:
            result = await self.collection.insert_one(event_to_document(event))
        except DuplicateKeyError as e:
            raise _conflict_from(e) from e
        return event.model_copy(update={"id": str(result.inserted_id)})

    async def find_by_slug(self, slug: str) -> Optional[Event]:
        doc = await self.collection.find_one({"slug": slug})
        return document_to_event(doc) if doc else None

    async def list(self, query: EventQuery, skip: int, limit: int) -> Tuple[List[Event], int]:
        mongo_query: Dict[str, Any] = {}
        if query.category:
            mongo_query["category"] = query.category
        if query.featured is not None:
            mongo_query["featured"] = query.featured

        date_filter: Dict[str, Any] = {}
        if query.upcoming_after:
            date_filter["$gte"] = query.upcoming_after
        if query.start_date:
            date_filter["$gte"] = max(query.start_date, date_filter.get("$gte", query.start_date))
        if query.end_date:
            date_filter["$lte"] = query.end_date
        if date_filter:
            mongo_query["startDate"] = date_filter

        if query.search:
            pattern = _regex_any(query.search)
            mongo_query["$or"] = [{"title": pattern}, {"description": pattern}, {"tags": pattern}]

        if query.upcoming_after:
            sort = [("startDate", ASCENDING)]
        else:
            sort = [("featured", DESCENDING), ("startDate", DESCENDING)]

        cursor = self.collection.find(mongo_query).sort(sort).skip(skip).limit(limit)
        docs = await cursor.to_list(length=None)
        total = await self.collection.count_documents(mongo_query)
        return [document_to_event(d) for d in docs], total


# ============================================================================
# Database
# ============================================================================

class Database:
    """
    Owns the AsyncMongoClient. Constructed once by the app factory,
    connected at startup and closed at shutdown.
    """

    def __init__(
        self,
        uri: str,
        db_name: str,
        max_pool_size: int = 10,
        server_selection_timeout_ms: int = 5000,
    ):
        self.uri = uri
        self.db_name = db_name
        self.max_pool_size = max_pool_size
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.client: Optional[AsyncMongoClient] = None
        self.stores: Optional[Stores] = None

    async def connect(self) -> Stores:
        if self.stores is not None:
            return self.stores

        self.client = AsyncMongoClient(
            self.uri,
            maxPoolSize=self.max_pool_size,
            serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            tz_aware=True,
        )
        await self.client.admin.command("ping")
        db = self.client[self.db_name]
        logger.info(f"[DATABASE] Connected to MongoDB database {self.db_name!r}")

        await self.ensure_indexes(db)
        self.stores = Stores(
            submissions=MongoSubmissionStore(db["submissions"]),
            places=MongoPlaceStore(db["places"]),
            events=MongoEventStore(db["events"]),
        )
        return self.stores

    @staticmethod
    async def ensure_indexes(db) -> None:
        places = db["places"]
        await places.create_index([("slug", ASCENDING)], unique=True)
        await places.create_index([("googlePlaceId", ASCENDING)], unique=True, sparse=True)
        await places.create_index([("location", GEOSPHERE)])
        await places.create_index([("name", TEXT), ("description", TEXT)])
        await places.create_index([("category", ASCENDING), ("featured", DESCENDING)])
        await places.create_index([("createdAt", DESCENDING)])

        events = db["events"]
        await events.create_index([("slug", ASCENDING)], unique=True)
        await events.create_index([("startDate", ASCENDING)])
        await events.create_index([("title", TEXT), ("description", TEXT)])

        submissions = db["submissions"]
        await submissions.create_index([("status", ASCENDING), ("submittedAt", DESCENDING)])
        await submissions.create_index([("type", ASCENDING), ("status", ASCENDING)])
        await submissions.create_index([("submittedBy.email", ASCENDING)])
        logger.info("[DATABASE] Indexes ensured")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            logger.info("[DATABASE] MongoDB connection closed")
        self.client = None
        self.stores = None
