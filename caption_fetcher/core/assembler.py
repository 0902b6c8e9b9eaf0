"""Response assembly: map acquisition outcomes onto the transcript row.

WHY: Consumers of the HTTP API (and the CLI's JSON output) rely on one row
shape regardless of what happened upstream. Assembly is the only place that
decides status codes, cache directives and the user-facing error text.

HOW: respond() validates the video ID, awaits the engine, and turns either
the AcquisitionResult or the raised exception into an AssembledResponse:
a plain body dict plus status code and headers. The FastAPI layer and the
CLI both render that object as-is.

RULES:
- Body is always {success, language, segments, raw} plus optional
  error and method keys
- Missing or malformed ID → 400, success false, no upstream call
- Every other outcome → 200, success true (segments may be empty)
- raw == " ".join(segment texts)
- language is the declared code, else detect_language(raw), else ""
- Cache: "public, s-maxage=N, stale-while-revalidate=2N" with segments,
  "no-store" without
- X-Transcript-Status is ok, empty (no transcript exists) or failed
- respond() never raises; unexpected errors are logged and reported as
  a failed row
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from caption_fetcher.config import CACHE_SECONDS
from caption_fetcher.core.errors import (
    EMPTY_REASONS,
    REASON_MESSAGES,
    AcquisitionError,
    FailureReason,
)
from caption_fetcher.core.ir import AcquisitionResult
from caption_fetcher.core.language import detect_language
from caption_fetcher.core.validation import is_valid_video_id

logger = logging.getLogger(__name__)

MISSING_ID_MESSAGE = "Missing videoId parameter"

STATUS_OK = "ok"
STATUS_EMPTY = "empty"
STATUS_FAILED = "failed"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@dataclass
class AssembledResponse:
    """A finished transcript row with its HTTP framing."""

    body: Dict[str, Any]
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def transcript_status(self) -> str:
        return self.headers.get("X-Transcript-Status", "")


def cache_headers(has_segments: bool, cache_seconds: int = CACHE_SECONDS) -> Dict[str, str]:
    if has_segments and cache_seconds > 0:
        return {
            "Cache-Control": "public, s-maxage={}, stale-while-revalidate={}".format(
                cache_seconds, cache_seconds * 2
            )
        }
    return {"Cache-Control": "no-store"}


def _headers(status: str, has_segments: bool, cache_seconds: int) -> Dict[str, str]:
    headers = dict(CORS_HEADERS)
    headers.update(cache_headers(has_segments, cache_seconds))
    headers["X-Transcript-Status"] = status
    return headers


def _empty_body(success: bool, error: Optional[str]) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success, "language": "", "segments": [], "raw": ""}
    if error is not None:
        body["error"] = error
    return body


def assemble_success(
    result: AcquisitionResult,
    cache_seconds: int = CACHE_SECONDS,
) -> AssembledResponse:
    """Build the row for a transcript that has at least one segment."""
    segments: List[Dict[str, Any]] = [segment.to_dict() for segment in result.segments]
    raw = result.raw
    language = result.language_code or detect_language(raw)
    body: Dict[str, Any] = {
        "success": True,
        "language": language,
        "segments": segments,
        "raw": raw,
    }
    if result.method:
        body["method"] = result.method
    has_segments = bool(segments)
    status = STATUS_OK if has_segments else STATUS_EMPTY
    return AssembledResponse(body, 200, _headers(status, has_segments, cache_seconds))


def assemble_failure(
    error: BaseException,
    cache_seconds: int = CACHE_SECONDS,
) -> AssembledResponse:
    """Build the row for an acquisition that produced no transcript.

    Legitimate empty states (captions disabled, no transcript) and genuine
    failures share the row shape; only X-Transcript-Status tells them apart.
    """
    if isinstance(error, AcquisitionError):
        reason = error.reason
    else:
        reason = FailureReason.EXHAUSTED
    status = STATUS_EMPTY if reason in EMPTY_REASONS else STATUS_FAILED
    body = _empty_body(True, REASON_MESSAGES[reason])
    return AssembledResponse(body, 200, _headers(status, False, cache_seconds))


def assemble_invalid(message: str) -> AssembledResponse:
    return AssembledResponse(
        _empty_body(False, message),
        400,
        _headers(STATUS_FAILED, False, 0),
    )


async def respond(
    engine: Any,
    video_id: Optional[str],
    preferred_language: Optional[str] = None,
    cache_seconds: int = CACHE_SECONDS,
) -> AssembledResponse:
    """Validate, acquire and assemble one transcript row.

    Args:
        engine: Anything with an async acquire(video_id, preferred_language).
        video_id: Raw caller-supplied ID (may be None or malformed).
        preferred_language: Optional language hint, passed through.
        cache_seconds: Shared-cache lifetime for successful rows.

    Returns:
        The assembled row. Never raises for acquisition failures.
    """
    if not video_id:
        return assemble_invalid(MISSING_ID_MESSAGE)
    if not is_valid_video_id(video_id):
        return assemble_invalid(REASON_MESSAGES[FailureReason.INVALID_INPUT])

    language = preferred_language.strip() if preferred_language else None

    try:
        result = await engine.acquire(video_id, language or None)
    except AcquisitionError as exc:
        logger.info("No transcript for %s (%s): %s", video_id, exc.reason.value, exc.detail)
        return assemble_failure(exc, cache_seconds)
    except Exception as exc:
        logger.exception("Unexpected error acquiring transcript for %s", video_id)
        return assemble_failure(exc, cache_seconds)

    if not result.has_text():
        return assemble_failure(
            AcquisitionError(FailureReason.NO_TRANSCRIPT), cache_seconds
        )
    return assemble_success(result, cache_seconds)
