"""Submission moderation state machine

Transitions are pure: each one takes the current submission and returns the
next submission plus the commands the caller must execute against the
datastore. Nothing here performs I/O.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from directory_api.core.normalization import create_unique_slug, generate_slug
from directory_api.models.errors import InvalidStateError, ValidationError
from directory_api.models.listings import Event, Place
from directory_api.models.submission import (
    DRAFT_MODELS,
    EventDraft,
    PlaceDraft,
    Submission,
    SubmissionStatus,
    SubmittedBy,
)

logger = logging.getLogger(__name__)

# Field that must be present for each submission type
REQUIRED_FIELD = {
    "place": "name",
    "event": "title",
    "real-estate": "title",
}


@dataclass(frozen=True)
class ListingDefaults:
    """Values filled into approved drafts that left them out"""
    city: str = "Kingston"
    province: str = "ON"
    country: str = "Canada"
    latitude: float = 44.2312
    longitude: float = -76.4816
    placeholder_image: str = "/images/placeholder-place.jpg"

    @classmethod
    def from_settings(cls, settings) -> "ListingDefaults":
        return cls(
            city=settings.default_city,
            province=settings.default_province,
            country=settings.default_country,
            latitude=settings.default_latitude,
            longitude=settings.default_longitude,
            placeholder_image=settings.placeholder_image,
        )


@dataclass(frozen=True)
class PersistSubmission:
    """Write the reviewed submission, only if it is still pending"""
    submission: Submission


@dataclass(frozen=True)
class CreatePlace:
    place: Place
    submission_id: Optional[str] = None


@dataclass(frozen=True)
class CreateEvent:
    event: Event
    submission_id: Optional[str] = None


Command = Union[PersistSubmission, CreatePlace, CreateEvent]


@dataclass
class Transition:
    submission: Submission
    commands: List[Command] = field(default_factory=list)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _present(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset values so validation reports them as missing"""
    return {k: v for k, v in values.items() if v is not None}


def validation_error_from(exc: PydanticValidationError, prefix: str = "") -> ValidationError:
    """Collapse a pydantic error into one ValidationError naming the bad fields."""
    fields: List[str] = []
    missing: List[str] = []
    for err in exc.errors():
        name = ".".join(str(p) for p in err.get("loc", ()))
        name = f"{prefix}{name}" if name else prefix.rstrip(".")
        if err.get("type") == "missing":
            missing.append(name)
        else:
            fields.append(name)

    if missing and not fields:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        message = f"Invalid fields: {', '.join(missing + fields)}"
    return ValidationError(message, fields=missing + fields)


# ============================================================================
# Creation
# ============================================================================

def new_submission(
    submission_type: str,
    data: Optional[Mapping[str, Any]],
    submitted_by: Union[SubmittedBy, Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> Submission:
    """
    Build a pending submission.

    The draft is validated against the model for its type; a place without a
    name or an event without a title is rejected here.
    """
    draft_model = DRAFT_MODELS.get(submission_type)
    if draft_model is None:
        raise ValidationError(
            f"Invalid submission type: {submission_type!r}", fields=["type"]
        )

    data = dict(data or {})
    required = REQUIRED_FIELD[submission_type]
    value = data.get(required)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{submission_type.capitalize()} submissions must have a {required}",
            fields=[f"data.{required}"],
        )

    try:
        draft = draft_model.model_validate(data)
        contact = submitted_by if isinstance(submitted_by, SubmittedBy) else SubmittedBy.model_validate(submitted_by)
    except PydanticValidationError as e:
        raise validation_error_from(e) from e

    if isinstance(draft, (PlaceDraft, EventDraft)) and not draft.slug:
        draft = draft.model_copy(update={"slug": generate_slug(value) or create_unique_slug("")})

    return Submission(
        type=submission_type,
        data=draft,
        submitted_by=contact,
        status=SubmissionStatus.PENDING,
        submitted_at=now or _now(),
    )


# ============================================================================
# Materialization
# ============================================================================

def build_place_from_draft(draft: PlaceDraft, defaults: ListingDefaults) -> Place:
    """Turn an approved place draft into a full Place, validating every field."""
    address = draft.address.model_copy(update={
        "city": draft.address.city or defaults.city,
        "province": draft.address.province or defaults.province,
        "country": draft.address.country or defaults.country,
    })
    payload: Dict[str, Any] = {
        "slug": draft.slug or generate_slug(draft.name) or create_unique_slug(""),
        "name": draft.name,
        "category": draft.category,
        "subcategories": draft.subcategories,
        "description": draft.description,
        "address": address,
        "location": draft.location or {"lat": defaults.latitude, "lng": defaults.longitude},
        "contact": draft.contact,
        "hours": draft.hours,
        "price_range": draft.price_range,
        "images": draft.images or {"main": defaults.placeholder_image, "gallery": []},
        "features": draft.features,
        "amenities": draft.amenities,
        "verified": False,
        "featured": False,
    }
    try:
        return Place.model_validate(_present(payload))
    except PydanticValidationError as e:
        raise validation_error_from(e, prefix="data.") from e


def build_event_from_draft(draft: EventDraft, defaults: ListingDefaults) -> Event:
    """Turn an approved event draft into a full Event, validating every field."""
    location = draft.location
    payload: Dict[str, Any] = {
        "slug": draft.slug or generate_slug(draft.title) or create_unique_slug(""),
        "title": draft.title,
        "description": draft.description,
        "category": draft.category,
        "start_date": draft.start_date,
        "end_date": draft.end_date,
        "start_time": draft.start_time,
        "end_time": draft.end_time,
        "location": _present({
            "name": location.name,
            "address": location.address.model_copy(update={
                "city": location.address.city or defaults.city,
                "province": location.address.province or defaults.province,
                "country": location.address.country or defaults.country,
            }),
            "coordinates": location.coordinates or {"lat": defaults.latitude, "lng": defaults.longitude},
        }),
        "organizer": _present({"name": draft.organizer.name, "contact": draft.organizer.contact}),
        "ticket_info": draft.ticket_info,
        "images": draft.images or {"main": defaults.placeholder_image, "gallery": []},
        "tags": draft.tags,
        "max_attendees": draft.max_attendees,
        "current_attendees": 0,
        "verified": False,
        "featured": False,
    }
    try:
        return Event.model_validate(_present(payload))
    except PydanticValidationError as e:
        raise validation_error_from(e, prefix="data.") from e


def materialize(submission: Submission, defaults: ListingDefaults) -> Optional[Command]:
    """The create command for an approved submission; real-estate has no target collection"""
    if submission.type == "place":
        return CreatePlace(place=build_place_from_draft(submission.data, defaults), submission_id=submission.id)
    if submission.type == "event":
        return CreateEvent(event=build_event_from_draft(submission.data, defaults), submission_id=submission.id)
    return None


# ============================================================================
# Transitions
# ============================================================================

def _ensure_pending(submission: Submission, action: str) -> None:
    if submission.status != SubmissionStatus.PENDING:
        raise InvalidStateError(
            f"Can only {action} pending submissions (current status: {submission.status.value})"
        )


def approve(
    submission: Submission,
    reviewer_id: str,
    notes: Optional[str] = None,
    defaults: Optional[ListingDefaults] = None,
    now: Optional[datetime] = None,
) -> Transition:
    """
    pending -> approved

    The draft is re-validated as a full listing before anything changes, so
    an incomplete proposal stays pending instead of being approved and then
    failing to materialize.
    """
    _ensure_pending(submission, "approve")
    create = materialize(submission, defaults or ListingDefaults())

    reviewed = submission.model_copy(update={
        "status": SubmissionStatus.APPROVED,
        "reviewer_id": reviewer_id,
        "reviewed_at": now or _now(),
        "review_notes": notes.strip() if notes and notes.strip() else submission.review_notes,
    })
    commands: List[Command] = [PersistSubmission(reviewed)]
    if create is not None:
        commands.append(create)
    return Transition(submission=reviewed, commands=commands)


def reject(
    submission: Submission,
    reviewer_id: str,
    reason: Optional[str],
    now: Optional[datetime] = None,
) -> Transition:
    """pending -> rejected; the reason is mandatory and becomes the review notes"""
    if not reason or not reason.strip():
        raise ValidationError("Rejection reason is required", fields=["notes"])
    _ensure_pending(submission, "reject")

    reviewed = submission.model_copy(update={
        "status": SubmissionStatus.REJECTED,
        "reviewer_id": reviewer_id,
        "reviewed_at": now or _now(),
        "review_notes": reason.strip(),
    })
    return Transition(submission=reviewed, commands=[PersistSubmission(reviewed)])
