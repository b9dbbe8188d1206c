"""Tests for the pure submission transitions"""

from datetime import datetime, timezone

import pytest

from directory_api.core import state_machine
from directory_api.core.state_machine import (
    CreateEvent,
    CreatePlace,
    ListingDefaults,
    PersistSubmission,
)
from directory_api.models.errors import InvalidStateError, ValidationError
from directory_api.models.submission import EventDraft, PlaceDraft, SubmissionStatus

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestNewSubmission:

    def test_place_submission_is_pending(self, place_submission_data, submitter):
        submission = state_machine.new_submission("place", place_submission_data, submitter, now=NOW)

        assert submission.status == SubmissionStatus.PENDING
        assert submission.reviewed_at is None
        assert isinstance(submission.data, PlaceDraft)
        assert submission.data.slug == "kingston-coffee-house"
        assert submission.data.features == ["wifi", "patio"]
        assert submission.submitted_by.email == "sam@example.com"

    def test_event_tags_are_normalized(self, event_submission_data, submitter):
        submission = state_machine.new_submission("event", event_submission_data, submitter)
        assert isinstance(submission.data, EventDraft)
        assert submission.data.tags == ["jazz", "outdoor"]

    def test_place_without_name(self, submitter):
        with pytest.raises(ValidationError) as exc_info:
            state_machine.new_submission("place", {"name": "  "}, submitter)
        assert exc_info.value.fields == ["data.name"]

    def test_event_without_title(self, submitter):
        with pytest.raises(ValidationError):
            state_machine.new_submission("event", {"description": "No title"}, submitter)

    def test_unknown_type(self, submitter):
        with pytest.raises(ValidationError):
            state_machine.new_submission("restaurant", {"name": "x"}, submitter)

    def test_submitter_email_required(self):
        with pytest.raises(ValidationError) as exc_info:
            state_machine.new_submission("place", {"name": "Cafe"}, {"name": "Sam"})
        assert exc_info.value.fields == ["email"]


class TestApprove:

    def test_approve_place(self, place_submission_data, submitter):
        submission = state_machine.new_submission("place", place_submission_data, submitter)
        submission = submission.model_copy(update={"id": "sub-1"})

        transition = state_machine.approve(submission, "mod-1", "Looks good", now=NOW)

        assert transition.submission.status == SubmissionStatus.APPROVED
        assert transition.submission.reviewed_at == NOW
        assert transition.submission.reviewer_id == "mod-1"
        assert transition.submission.review_notes == "Looks good"

        persist, create = transition.commands
        assert isinstance(persist, PersistSubmission)
        assert isinstance(create, CreatePlace)
        assert create.submission_id == "sub-1"
        assert create.place.slug == "kingston-coffee-house"
        assert create.place.address.city == "Kingston"
        assert create.place.contact.email == "hello@coffee.example"

    def test_unsluggable_name_gets_random_slug(self, place_submission_data, submitter):
        submission = state_machine.new_submission(
            "place", {**place_submission_data, "name": "北京饭店"}, submitter
        )
        assert submission.data.slug

        stored = submission.model_copy(update={"data": submission.data.model_copy(update={"slug": None})})
        _, create = state_machine.approve(stored, "mod-1").commands

        assert create.place.name == "北京饭店"
        assert create.place.slug

    def test_approve_event(self, event_submission_data, submitter):
        submission = state_machine.new_submission("event", event_submission_data, submitter)
        transition = state_machine.approve(submission, "mod-1")

        create = transition.commands[1]
        assert isinstance(create, CreateEvent)
        assert create.event.location.coordinates.lat == ListingDefaults().latitude
        assert create.event.organizer.name == "Kingston Jazz Society"
        assert create.event.current_attendees == 0

    def test_real_estate_has_no_create_command(self, submitter):
        submission = state_machine.new_submission("real-estate", {"title": "Loft downtown"}, submitter)
        transition = state_machine.approve(submission, "mod-1")
        assert [type(c) for c in transition.commands] == [PersistSubmission]

    def test_incomplete_draft_stays_pending(self, submitter):
        """A place missing category and description cannot be approved"""
        submission = state_machine.new_submission("place", {"name": "Half Done"}, submitter)

        with pytest.raises(ValidationError) as exc_info:
            state_machine.approve(submission, "mod-1")

        assert "data.category" in exc_info.value.fields
        assert "data.description" in exc_info.value.fields
        assert submission.status == SubmissionStatus.PENDING

    def test_approve_twice(self, place_submission_data, submitter):
        submission = state_machine.new_submission("place", place_submission_data, submitter)
        approved = state_machine.approve(submission, "mod-1").submission

        with pytest.raises(InvalidStateError):
            state_machine.approve(approved, "mod-2")

    def test_input_is_not_mutated(self, place_submission_data, submitter):
        submission = state_machine.new_submission("place", place_submission_data, submitter)
        state_machine.approve(submission, "mod-1")
        assert submission.status == SubmissionStatus.PENDING
        assert submission.reviewed_at is None


class TestReject:

    def test_reject_with_reason(self, place_submission_data, submitter):
        submission = state_machine.new_submission("place", place_submission_data, submitter)
        transition = state_machine.reject(submission, "mod-1", "  Duplicate listing ", now=NOW)

        assert transition.submission.status == SubmissionStatus.REJECTED
        assert transition.submission.review_notes == "Duplicate listing"
        assert transition.submission.reviewed_at == NOW
        assert [type(c) for c in transition.commands] == [PersistSubmission]

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reason_required(self, place_submission_data, submitter, reason):
        submission = state_machine.new_submission("place", place_submission_data, submitter)
        with pytest.raises(ValidationError):
            state_machine.reject(submission, "mod-1", reason)
        assert submission.status == SubmissionStatus.PENDING

    def test_cannot_reject_approved(self, place_submission_data, submitter):
        submission = state_machine.new_submission("place", place_submission_data, submitter)
        approved = state_machine.approve(submission, "mod-1").submission
        with pytest.raises(InvalidStateError):
            state_machine.reject(approved, "mod-1", "Changed my mind")
