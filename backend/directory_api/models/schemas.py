"""API request/response schemas"""

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from directory_api.models.listings import CamelModel


class SubmissionCreateRequest(CamelModel):
    """POST /api/submissions request"""
    type: str = Field(..., description="place, event or real-estate")
    data: Dict[str, Any] = Field(default_factory=dict)
    submitted_by: Dict[str, Any] = Field(..., description="Contact details of the submitter")


class SubmissionDecisionRequest(CamelModel):
    """PATCH /api/submissions request"""
    submission_id: str = Field(..., min_length=1)
    action: Literal["approve", "reject"]
    notes: Optional[str] = None


class ImportRequest(CamelModel):
    """POST /api/import/google-places request"""
    place_id: Optional[str] = None


class RatingRequest(CamelModel):
    """POST /api/places/{slug}/ratings request"""
    rating: float = Field(..., ge=1, le=5)
