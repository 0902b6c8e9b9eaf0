"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for response serialization
and automatic OpenAPI documentation. The transcript row is a public
contract, so it is declared once here and documented field by field.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- error and method are optional and omitted from the JSON when unset
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class TranscriptSegment(BaseModel):
    """One timed caption line."""

    start: float = Field(description="Start time in seconds.", ge=0, json_schema_extra={"example": 1.5})
    duration: float = Field(description="Duration in seconds.", ge=0, json_schema_extra={"example": 2.25})
    text: str = Field(description="Normalized caption text.", json_schema_extra={"example": "hello world"})


class TranscriptResponse(BaseModel):
    """The transcript row returned by GET /api/transcript.

    WHY: Callers render this row directly. Failures that are not the
    caller's fault still return success=true with empty segments so the
    row shape never changes; the X-Transcript-Status header tells a
    missing transcript apart from a transient failure.
    """

    success: bool = Field(description="False only for missing or malformed input.")
    language: str = Field(
        default="",
        description="Language code of the transcript, empty when unknown.",
        json_schema_extra={"example": "en"},
    )
    segments: List[TranscriptSegment] = Field(
        default_factory=list,
        description="Timed caption lines in upstream order.",
    )
    raw: str = Field(default="", description="All segment texts joined by single spaces.")
    error: Optional[str] = Field(
        default=None,
        description="Human-readable reason when no transcript was produced.",
    )
    method: Optional[str] = Field(
        default=None,
        description="Which fallback tier or path produced the transcript.",
        json_schema_extra={"example": "manual-priority-en"},
    )


class HealthResponse(BaseModel):
    """Health check response.

    WHY: Load balancers and orchestrators need a simple endpoint
    to verify the service is alive and ready.
    """

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
