"""/api/submissions endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Security

from directory_api.api.deps import get_submission_service
from directory_api.core.auth import Identity, resolve_identity
from directory_api.core.submissions import SubmissionService
from directory_api.models.schemas import SubmissionCreateRequest, SubmissionDecisionRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/submissions", status_code=201)
async def create_submission(
    request: SubmissionCreateRequest,
    service: SubmissionService = Depends(get_submission_service),
):
    """Anyone may propose a listing; it waits for moderation"""
    submission = await service.create(request.type, request.data, request.submitted_by)
    return {
        "message": "Submission received successfully",
        "submissionId": submission.id,
    }


@router.get("/submissions")
async def list_submissions(
    status: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(20),
    identity: Optional[Identity] = Security(resolve_identity),
    service: SubmissionService = Depends(get_submission_service),
):
    submissions, pagination = await service.list(identity, status, type, page, limit)
    return {
        "submissions": [s.to_api() for s in submissions],
        "pagination": pagination,
    }


@router.patch("/submissions")
async def decide_submission(
    request: SubmissionDecisionRequest,
    identity: Optional[Identity] = Security(resolve_identity),
    service: SubmissionService = Depends(get_submission_service),
):
    """Approve or reject a pending submission"""
    submission = await service.decide(request.submission_id, identity, request.action, request.notes)
    return {
        "message": f"Submission {submission.status.value} successfully",
        "submission": submission.to_api(),
    }


@router.get("/submissions/stats")
async def submission_stats(
    identity: Optional[Identity] = Security(resolve_identity),
    service: SubmissionService = Depends(get_submission_service),
):
    return await service.stats(identity)
