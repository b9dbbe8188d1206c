"""Tests for the MongoDB document conversion helpers"""

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from directory_api.core import state_machine
from directory_api.core.database import (
    _conflict_from,
    document_to_place,
    document_to_submission,
    place_to_document,
    submission_to_document,
)
from directory_api.models.listings import Place
from directory_api.models.submission import EventDraft, SubmissionStatus


@pytest.fixture
def place():
    return Place.model_validate({
        "slug": "joes-pizza",
        "name": "Joe's Pizza",
        "category": "restaurant",
        "description": "Pizza by the slice.",
        "address": {"street": "123 Main St", "city": "Kingston", "province": "ON"},
        "location": {"lat": 44.23, "lng": -76.48},
        "images": {"main": "https://example.com/pizza.jpg"},
        "googlePlaceId": "ChIJ-joes-pizza-kingston-0001",
        "createdAt": datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc),
    })


class TestConflicts:

    @pytest.mark.parametrize("key", ["googlePlaceId", "slug"])
    def test_key_from_key_pattern(self, key):
        exc = DuplicateKeyError("E11000 duplicate key error", 11000, {"keyPattern": {key: 1}})

        conflict = _conflict_from(exc)

        assert conflict.key == key
        assert conflict.http_status == 409

    def test_missing_details(self):
        conflict = _conflict_from(DuplicateKeyError("E11000 duplicate key error", 11000))
        assert conflict.key is None


class TestPlaceDocuments:

    def test_location_stored_as_geojson(self, place):
        doc = place_to_document(place)

        assert doc["location"] == {"type": "Point", "coordinates": [-76.48, 44.23]}
        assert doc["googlePlaceId"] == "ChIJ-joes-pizza-kingston-0001"
        assert "id" not in doc and "_id" not in doc

    def test_document_back_to_place(self, place):
        oid = ObjectId()

        restored = document_to_place({**place_to_document(place), "_id": oid, "score": 1.5})

        assert restored.id == str(oid)
        assert restored.location.lat == 44.23
        assert restored.location.lng == -76.48
        assert restored.model_dump(exclude={"id"}) == place.model_dump(exclude={"id"})


class TestSubmissionDocuments:

    def test_event_submission_keeps_its_draft_type(self, event_submission_data, submitter):
        submission = state_machine.new_submission("event", event_submission_data, submitter)
        oid = ObjectId()

        doc = submission_to_document(submission)
        restored = document_to_submission({**doc, "_id": oid})

        assert doc["status"] == "pending"
        assert restored.id == str(oid)
        assert restored.status == SubmissionStatus.PENDING
        assert isinstance(restored.data, EventDraft)
        assert restored.data.title == "Harbour Jazz Night"
        assert restored.data.start_date == submission.data.start_date
        assert restored.submitted_by.email == "sam@example.com"
