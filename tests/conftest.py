"""Shared fixtures"""

from datetime import datetime, timezone

import pytest

from directory_api.core.config import Settings
from directory_api.core.memory_store import MemoryEventStore, MemoryPlaceStore, MemorySubmissionStore
from directory_api.core.stores import Stores

ADMIN_KEY = "test-admin-key"
PLACE_ID = "ChIJ-joes-pizza-kingston-0001"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_backend="memory",
        google_maps_api_key="test-google-key",
        admin_api_key=ADMIN_KEY,
        trust_identity_headers=True,
        google_max_retries=2,
        log_level="WARNING",
    )


@pytest.fixture
def stores():
    return Stores(
        submissions=MemorySubmissionStore(),
        places=MemoryPlaceStore(),
        events=MemoryEventStore(),
    )


@pytest.fixture
def joes_pizza():
    """Google Place Details result for a small Kingston restaurant"""
    return {
        "place_id": PLACE_ID,
        "name": "Joe's Pizza",
        "formatted_address": "123 Main St, Kingston, ON K7L 1A1, Canada",
        "geometry": {"location": {"lat": 44.23, "lng": -76.48}},
        "types": ["restaurant", "food", "point_of_interest", "establishment"],
        "price_level": 2,
        "rating": 4.5,
        "user_ratings_total": 120,
        "business_status": "OPERATIONAL",
        "opening_hours": {
            "weekday_text": ["Monday: 9:00 AM – 5:00 PM", "Sunday: Closed"],
        },
    }


@pytest.fixture
def place_submission_data():
    return {
        "name": "Kingston Coffee House",
        "category": "cafe",
        "description": "Espresso and pastries by the water.",
        "address": {"street": "1 Ontario St", "postalCode": "K7L 2Y2"},
        "location": {"lat": 44.229, "lng": -76.479},
        "contact": {"phone": "613-555-0100", "email": "HELLO@coffee.example"},
        "features": "wifi, patio",
    }


@pytest.fixture
def event_submission_data():
    return {
        "title": "Harbour Jazz Night",
        "description": "Live jazz on the waterfront.",
        "category": "music",
        "startDate": datetime(2030, 7, 1, 19, 0, tzinfo=timezone.utc).isoformat(),
        "startTime": "19:00",
        "location": {"name": "Confederation Park", "address": {"street": "209 Ontario St"}},
        "organizer": {"name": "Kingston Jazz Society"},
        "tags": "Jazz, Outdoor",
    }


@pytest.fixture
def submitter():
    return {"name": "Sam Lee", "email": "Sam@Example.com"}
