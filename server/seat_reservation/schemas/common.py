"""Common Pydantic schemas."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class Violation(BaseModel):
    """One failed field of a rejected request."""

    path: str = Field(..., description="Location of the invalid field, e.g. body.origin")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code, e.g. SEAT_TAKEN")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    errors: Optional[Dict[str, str]] = Field(None, description="Per-field validation messages")
    violations: Optional[List[Violation]] = Field(None, description="Request schema violations")
    conflicting_resource: Optional[Dict[str, Any]] = Field(None, description="Resource that caused a conflict")
    partial_summary: Optional[Dict[str, Any]] = Field(None, description="Progress of an interrupted cascading delete")


PROBLEM_RESPONSES = {
    400: {"model": Problem, "description": "Invalid input"},
    401: {"model": Problem, "description": "Missing or invalid bearer token"},
    404: {"model": Problem, "description": "Unknown resource"},
    422: {"model": Problem, "description": "Request schema violation"},
    503: {"model": Problem, "description": "Store unavailable, retry"},
}
