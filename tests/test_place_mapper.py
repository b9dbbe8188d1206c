"""Tests for mapping Google Places results onto Place"""

import pytest

from directory_api.core.place_mapper import (
    PLACEHOLDER_IMAGE,
    extract_subcategories,
    generate_description,
    is_operational,
    map_category,
    map_external_place,
    map_external_places,
    map_price_level,
    validate_external_place,
)
from directory_api.models.errors import BusinessNotOperationalError, ValidationError
from directory_api.models.google_places import ExternalPlaceResult


def _result(**fields) -> ExternalPlaceResult:
    return ExternalPlaceResult.model_validate(fields)


class TestMapExternalPlace:

    def test_joes_pizza(self, joes_pizza):
        """Category, price range and address from a minimal restaurant result"""
        place = map_external_place(_result(**joes_pizza))

        assert place.category == "restaurant"
        assert place.price_range == "$$"
        assert place.address.model_dump(by_alias=True) == {
            "street": "123 Main St",
            "city": "Kingston",
            "province": "ON",
            "postalCode": "K7L 1A1",
            "country": "Canada",
        }
        assert place.location.lat == 44.23
        assert place.location.lng == -76.48
        assert place.hours["monday"].open == "09:00"
        assert "sunday" not in place.hours

    def test_defaults_for_new_places(self, joes_pizza):
        place = map_external_place(_result(**joes_pizza))

        assert place.slug.startswith("joes-pizza-")
        assert place.images.main == PLACEHOLDER_IMAGE
        assert place.images.gallery == []
        assert place.features == [] and place.amenities == []
        assert place.verified is False and place.featured is False
        assert place.google_place_id == joes_pizza["place_id"]
        assert place.rating == 4.5
        assert place.review_count == 120

    def test_missing_fields_listed_together(self):
        with pytest.raises(ValidationError) as exc_info:
            map_external_place(_result(place_id="x"))
        assert "name" in exc_info.value.message
        assert "formatted_address" in exc_info.value.message
        assert "geometry.location" in exc_info.value.message

    def test_invalid_latitude(self, joes_pizza):
        joes_pizza["geometry"] = {"location": {"lat": 95, "lng": 0}}
        with pytest.raises(ValidationError):
            map_external_place(_result(**joes_pizza))

    def test_closed_business(self, joes_pizza):
        joes_pizza["business_status"] = "CLOSED_PERMANENTLY"
        with pytest.raises(BusinessNotOperationalError):
            map_external_place(_result(**joes_pizza))

    def test_map_many_skips_failures(self, joes_pizza):
        closed = dict(joes_pizza, business_status="CLOSED_TEMPORARILY")
        places = map_external_places([_result(**joes_pizza), _result(**closed), _result(name="No address")])
        assert len(places) == 1


class TestHelpers:

    def test_first_recognized_type_wins(self):
        assert map_category(["point_of_interest", "cafe", "restaurant"]) == "cafe"
        assert map_category(["night_club", "bar"]) == "nightclub"

    def test_unknown_types_default_to_service(self):
        assert map_category(["establishment"]) == "service"
        assert map_category(None) == "service"

    def test_subcategories_drop_generic_and_primary(self):
        subcategories = extract_subcategories(
            ["restaurant", "food", "bar", "point_of_interest", "establishment"], "restaurant"
        )
        assert subcategories == ["Bar"]

    def test_price_levels(self):
        assert map_price_level(0) == "$"
        assert map_price_level(1) == "$"
        assert map_price_level(4) == "$$$$"
        assert map_price_level(None) is None

    def test_generated_description(self, joes_pizza):
        description = generate_description(_result(**joes_pizza), "restaurant", "Kingston")
        assert description == (
            "Joe's Pizza is a restaurant located in Kingston. Rated 4.5 out of 5 based on 120 reviews."
        )

    def test_editorial_summary_preferred(self, joes_pizza):
        joes_pizza["editorial_summary"] = {"overview": "Wood-fired pies since 1988."}
        assert generate_description(_result(**joes_pizza), "restaurant") == "Wood-fired pies since 1988."

    def test_missing_status_is_operational(self):
        assert is_operational(None)
        assert is_operational("OPERATIONAL")
        assert not is_operational("CLOSED_TEMPORARILY")

    def test_valid_place_passes(self, joes_pizza):
        validate_external_place(_result(**joes_pizza))
