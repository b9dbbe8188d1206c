"""Submission service - runs state machine transitions against the stores"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from directory_api.core import state_machine
from directory_api.core.auth import Identity, ensure_can_moderate
from directory_api.core.normalization import create_unique_slug
from directory_api.core.pagination import build_page, pagination_meta
from directory_api.core.state_machine import (
    CreateEvent,
    CreatePlace,
    ListingDefaults,
    PersistSubmission,
    Transition,
)
from directory_api.core.stores import Stores
from directory_api.models.errors import (
    ConflictError,
    InvalidStateError,
    MaterializationError,
    NotFoundError,
    ValidationError,
)
from directory_api.models.submission import DRAFT_MODELS, Submission, SubmissionStatus

logger = logging.getLogger(__name__)

DECISION_ACTIONS = ("approve", "reject")


class SubmissionService:
    """
    Creates submissions and applies moderator decisions.

    Approval flips the status with a conditional update first, then creates
    the listing. If creating the listing fails the submission stays approved
    and the failure is logged for manual reconciliation.
    """

    def __init__(self, stores: Stores, defaults: Optional[ListingDefaults] = None):
        self.stores = stores
        self.defaults = defaults or ListingDefaults()

    async def create(
        self,
        submission_type: str,
        data: Optional[Mapping[str, Any]],
        submitted_by: Mapping[str, Any],
    ) -> Submission:
        submission = state_machine.new_submission(submission_type, data, submitted_by)
        stored = await self.stores.submissions.insert(submission)
        logger.info(f"[SUBMISSION] Created {stored.type} submission {stored.id}")
        return stored

    async def get(self, submission_id: str) -> Submission:
        submission = await self.stores.submissions.get(submission_id) if submission_id else None
        if submission is None:
            raise NotFoundError("Submission not found")
        return submission

    async def approve(
        self, submission_id: str, identity: Optional[Identity], notes: Optional[str] = None
    ) -> Submission:
        reviewer = ensure_can_moderate(identity)
        submission = await self.get(submission_id)
        transition = state_machine.approve(submission, reviewer.id, notes, defaults=self.defaults)
        return await self._execute(transition)

    async def reject(
        self, submission_id: str, identity: Optional[Identity], reason: Optional[str]
    ) -> Submission:
        reviewer = ensure_can_moderate(identity)
        submission = await self.get(submission_id)
        transition = state_machine.reject(submission, reviewer.id, reason)
        return await self._execute(transition)

    async def decide(
        self,
        submission_id: str,
        identity: Optional[Identity],
        action: str,
        notes: Optional[str] = None,
    ) -> Submission:
        if action == "approve":
            return await self.approve(submission_id, identity, notes)
        if action == "reject":
            return await self.reject(submission_id, identity, notes)
        raise ValidationError(f"Invalid action: {action!r}", fields=["action"])

    async def list(
        self,
        identity: Optional[Identity],
        status: Optional[str] = None,
        submission_type: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[Submission], Dict[str, Any]]:
        ensure_can_moderate(identity)
        if status and status not in {s.value for s in SubmissionStatus}:
            raise ValidationError(f"Invalid status filter: {status!r}", fields=["status"])
        if submission_type and submission_type not in DRAFT_MODELS:
            raise ValidationError(f"Invalid type filter: {submission_type!r}", fields=["type"])

        window = build_page(page, limit)
        submissions, total = await self.stores.submissions.list(
            status, submission_type, window.skip, window.per_page
        )
        return submissions, pagination_meta(total, window)

    async def stats(self, identity: Optional[Identity]) -> Dict[str, Any]:
        ensure_can_moderate(identity)
        return await self.stores.submissions.stats()

    # ========================================================================
    # Command execution
    # ========================================================================

    async def _execute(self, transition: Transition) -> Submission:
        persisted = transition.submission
        for command in transition.commands:
            if isinstance(command, PersistSubmission):
                persisted = await self._persist(command.submission)
            elif isinstance(command, (CreatePlace, CreateEvent)):
                await self._materialize(command)
        return persisted

    async def _persist(self, submission: Submission) -> Submission:
        stored = await self.stores.submissions.update_if_pending(submission)
        if stored is not None:
            logger.info(
                f"[SUBMISSION] {submission.id} {submission.status.value} by {submission.reviewer_id}"
            )
            return stored

        # Lost a race with another moderator, or the record vanished
        current = await self.stores.submissions.get(submission.id)
        if current is None:
            raise NotFoundError("Submission not found")
        raise InvalidStateError(
            f"Submission has already been reviewed (current status: {current.status.value})"
        )

    async def _materialize(self, command) -> None:
        try:
            try:
                await self._insert_listing(command)
            except ConflictError as e:
                if e.key != "slug":
                    raise
                logger.info(f"[SUBMISSION] Slug taken for {command.submission_id}, retrying with suffix")
                await self._insert_listing(command, unique_slug=True)
        except Exception as e:
            logger.exception(
                f"[SUBMISSION] Submission {command.submission_id} approved but not materialized: {e}"
            )
            raise MaterializationError(
                "Submission was approved but the listing could not be created",
                hint="The submission stays approved; create the listing manually.",
            ) from e

    async def _insert_listing(self, command, unique_slug: bool = False) -> None:
        if isinstance(command, CreatePlace):
            place = command.place
            if unique_slug:
                place = place.model_copy(update={"slug": create_unique_slug(place.slug)})
            created = await self.stores.places.insert(place)
            logger.info(f"[SUBMISSION] Created place {created.slug} from submission {command.submission_id}")
        else:
            event = command.event
            if unique_slug:
                event = event.model_copy(update={"slug": create_unique_slug(event.slug)})
            created = await self.stores.events.insert(event)
            logger.info(f"[SUBMISSION] Created event {created.slug} from submission {command.submission_id}")
