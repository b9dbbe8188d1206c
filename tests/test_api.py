"""HTTP contract tests against the in-memory datastore"""

import httpx
import pytest
from fastapi.testclient import TestClient

from directory_api.core.config import Settings
from directory_api.main import create_app

ADMIN_KEY = "test-admin-key"
PLACE_ID = "ChIJ-joes-pizza-kingston-0001"
ADMIN = {"X-API-Key": ADMIN_KEY}
MODERATOR = {"X-User-Id": "mod-7", "X-User-Role": "moderator"}
USER = {"X-User-Id": "user-3", "X-User-Role": "user"}


@pytest.fixture
def google_calls():
    return []


@pytest.fixture
def client(settings, joes_pizza, google_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        google_calls.append(request)
        if request.url.path.endswith("/details/json"):
            return httpx.Response(200, json={"status": "OK", "result": joes_pizza})
        return httpx.Response(200, json={"status": "OK", "results": [joes_pizza]})

    app = create_app(settings, google_transport=httpx.MockTransport(handler))
    with TestClient(app) as test_client:
        yield test_client


def _submit(client, payload_type, data, submitter):
    return client.post("/api/submissions", json={"type": payload_type, "data": data, "submittedBy": submitter})


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestSubmissions:

    def test_create(self, client, place_submission_data, submitter):
        response = _submit(client, "place", place_submission_data, submitter)

        assert response.status_code == 201
        body = response.json()
        assert body["submissionId"]
        assert body["message"]

    def test_create_missing_name(self, client, submitter):
        response = _submit(client, "place", {"description": "No name"}, submitter)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"
        assert "name" in body["error"]

    def test_create_missing_body_fields(self, client):
        response = client.post("/api/submissions", json={"data": {"name": "x"}})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_listing_requires_identity(self, client):
        assert client.get("/api/submissions").status_code == 401
        assert client.get("/api/submissions", headers=USER).status_code == 403
        assert client.get("/api/submissions", headers={"X-API-Key": "wrong"}).status_code == 401

    def test_approve_flow(self, client, place_submission_data, submitter):
        submission_id = _submit(client, "place", place_submission_data, submitter).json()["submissionId"]

        response = client.patch(
            "/api/submissions",
            json={"submissionId": submission_id, "action": "approve", "notes": "Nice"},
            headers=MODERATOR,
        )

        assert response.status_code == 200
        submission = response.json()["submission"]
        assert submission["status"] == "approved"
        assert submission["reviewerId"] == "mod-7"
        assert submission["reviewedAt"]

        place = client.get("/api/places/kingston-coffee-house")
        assert place.status_code == 200
        assert place.json()["place"]["name"] == "Kingston Coffee House"

        again = client.patch(
            "/api/submissions",
            json={"submissionId": submission_id, "action": "approve"},
            headers=MODERATOR,
        )
        assert again.status_code == 409
        assert again.json()["code"] == "INVALID_STATE"

    def test_reject_requires_notes(self, client, place_submission_data, submitter):
        submission_id = _submit(client, "place", place_submission_data, submitter).json()["submissionId"]

        response = client.patch(
            "/api/submissions",
            json={"submissionId": submission_id, "action": "reject"},
            headers=ADMIN,
        )
        assert response.status_code == 400

        listing = client.get("/api/submissions", params={"status": "pending"}, headers=ADMIN).json()
        assert [s["id"] for s in listing["submissions"]] == [submission_id]
        assert listing["pagination"]["total"] == 1

    def test_decision_on_unknown_submission(self, client):
        response = client.patch(
            "/api/submissions",
            json={"submissionId": "nope", "action": "reject", "notes": "spam"},
            headers=ADMIN,
        )
        assert response.status_code == 404

    def test_decision_forbidden_for_users(self, client, place_submission_data, submitter):
        submission_id = _submit(client, "place", place_submission_data, submitter).json()["submissionId"]
        response = client.patch(
            "/api/submissions",
            json={"submissionId": submission_id, "action": "approve"},
            headers=USER,
        )
        assert response.status_code == 403

    def test_identity_headers_ignored_by_default(self, place_submission_data, submitter):
        settings = Settings(_env_file=None, database_backend="memory", admin_api_key=ADMIN_KEY, log_level="WARNING")
        assert settings.trust_identity_headers is False

        with TestClient(create_app(settings)) as client:
            submission_id = _submit(client, "place", place_submission_data, submitter).json()["submissionId"]
            forged = {"X-User-Id": "anyone", "X-User-Role": "admin"}

            response = client.patch(
                "/api/submissions",
                json={"submissionId": submission_id, "action": "approve"},
                headers=forged,
            )
            assert response.status_code == 401
            assert client.get("/api/submissions", headers=forged).status_code == 401

            pending = client.get("/api/submissions", params={"status": "pending"}, headers=ADMIN).json()
            assert [s["id"] for s in pending["submissions"]] == [submission_id]

    def test_stats(self, client, place_submission_data, event_submission_data, submitter):
        _submit(client, "place", place_submission_data, submitter)
        _submit(client, "event", event_submission_data, submitter)

        stats = client.get("/api/submissions/stats", headers=ADMIN).json()

        assert stats["total"] == 2
        assert stats["pending"] == 2
        assert stats["byType"] == {"place": 1, "event": 1}


class TestImport:

    def test_import_and_reimport(self, client, google_calls):
        first = client.post("/api/import/google-places", json={"placeId": PLACE_ID}, headers=ADMIN)
        second = client.post("/api/import/google-places", json={"placeId": PLACE_ID}, headers=ADMIN)

        assert first.status_code == 201
        assert first.json()["imported"] is True
        assert second.status_code == 200
        assert second.json()["imported"] is False
        assert second.json()["place"]["id"] == first.json()["place"]["id"]
        assert len(google_calls) == 1

        place = first.json()["place"]
        assert place["category"] == "restaurant"
        assert place["priceRange"] == "$$"
        assert place["googlePlaceId"] == PLACE_ID

    def test_import_requires_moderator(self, client):
        assert client.post("/api/import/google-places", json={"placeId": PLACE_ID}).status_code == 401

    def test_import_invalid_id(self, client, google_calls):
        response = client.post("/api/import/google-places", json={"placeId": "bad id!"}, headers=ADMIN)
        assert response.status_code == 400
        assert google_calls == []

    def test_import_unconfigured(self, settings):
        settings.google_maps_api_key = ""
        with TestClient(create_app(settings)) as client:
            response = client.post("/api/import/google-places", json={"placeId": PLACE_ID}, headers=ADMIN)
        assert response.status_code == 503
        assert response.json()["code"] == "CONFIGURATION_ERROR"

    def test_search(self, client):
        response = client.get(
            "/api/import/google-places/search",
            params={"query": "pizza", "location": "44.23,-76.48"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json()["results"][0]["placeId"] == PLACE_ID

    def test_search_bad_location(self, client):
        response = client.get(
            "/api/import/google-places/search",
            params={"query": "pizza", "location": "somewhere"},
            headers=ADMIN,
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"
        assert body["results"] == []

    @pytest.mark.parametrize("google_status, http_status", [
        ("REQUEST_DENIED", 403),
        ("OVER_QUERY_LIMIT", 429),
        ("NOT_FOUND", 500),
    ])
    def test_search_upstream_failure(self, settings, google_status, http_status):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"status": google_status}))

        with TestClient(create_app(settings, google_transport=transport)) as client:
            response = client.get("/api/import/google-places/search", params={"query": "pizza"}, headers=ADMIN)

        assert response.status_code == http_status
        body = response.json()
        assert body["success"] is False
        assert body["error"]
        assert body["results"] == []


class TestBrowsing:

    def test_places_listing_and_rating(self, client):
        client.post("/api/import/google-places", json={"placeId": PLACE_ID}, headers=ADMIN)

        listing = client.get("/api/places", params={"category": "restaurant,cafe", "near": "44.23,-76.48"}).json()
        assert [p["name"] for p in listing["places"]] == ["Joe's Pizza"]
        assert listing["pagination"]["total"] == 1

        far_away = client.get("/api/places", params={"near": "45.42,-75.69", "radiusKm": 5}).json()
        assert far_away["places"] == []

        slug = listing["places"][0]["slug"]
        assert client.post(f"/api/places/{slug}/ratings", json={"rating": 5}).status_code == 401

        rated = client.post(f"/api/places/{slug}/ratings", json={"rating": 1}, headers=USER)
        assert rated.status_code == 200
        place = rated.json()["place"]
        assert place["reviewCount"] == 121
        assert place["rating"] == pytest.approx((4.5 * 120 + 1) / 121)

    def test_unknown_place(self, client):
        response = client.get("/api/places/no-such-place")
        assert response.status_code == 404
        assert response.json()["error"] == "Place not found"

    def test_events_and_search(self, client, event_submission_data, submitter):
        submission_id = _submit(client, "event", event_submission_data, submitter).json()["submissionId"]
        client.patch(
            "/api/submissions",
            json={"submissionId": submission_id, "action": "approve"},
            headers=ADMIN,
        )

        upcoming = client.get("/api/events", params={"upcoming": "true"}).json()
        assert [e["slug"] for e in upcoming["events"]] == ["harbour-jazz-night"]
        assert client.get("/api/events/harbour-jazz-night").json()["event"]["title"] == "Harbour Jazz Night"

        results = client.get("/api/search", params={"q": "jazz"}).json()
        assert results["total"] == 1
        assert results["results"]["events"][0]["slug"] == "harbour-jazz-night"

        assert client.get("/api/search", params={"q": "j"}).json()["total"] == 0
