"""Secondary acquisition path backed by youtube-transcript-api.

WHY: When the watch-page path is exhausted, a second, independent upstream
contract often still works: the library talks to the player API instead of
scraping the page, so page-layout changes and timed-text quirks that broke
the primary path do not affect it.

HOW: A deliberately simple single-language fallback. Ask the library for
the preferred language (or SECONDARY_FALLBACK_LANGUAGE), and if no such
track exists take the first transcript the video lists. The blocking
library call runs in a worker thread via asyncio.to_thread, over a
requests session that puts REQUEST_TIMEOUT_S on every request. Library
exceptions are mapped onto FailureReason.

RULES:
- Snippet text goes through normalize_text; empty snippets are dropped
- A transcript with no text after normalization is NO_TRANSCRIPT
- The returned method tag is always "legacy-backend"
- The api_factory hook lets tests substitute the library client; it is
  called with the timeout-bound session as http_client
- A stalled upstream read ends after timeout_s, releasing the worker thread
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional

import requests
from youtube_transcript_api import (
    AgeRestricted,
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    RequestBlocked,
    TranscriptsDisabled,
    VideoUnavailable,
    VideoUnplayable,
    YouTubeTranscriptApi,
)

from caption_fetcher.config import REQUEST_TIMEOUT_S, SECONDARY_FALLBACK_LANGUAGE
from caption_fetcher.core.errors import AcquisitionError, FailureReason
from caption_fetcher.core.ir import AcquisitionResult, CaptionSegment
from caption_fetcher.core.normalizer import normalize_text

logger = logging.getLogger(__name__)

SECONDARY_METHOD = "legacy-backend"

# Checked in order; subclasses before their bases.
_ERROR_REASONS = (
    (TranscriptsDisabled, FailureReason.CAPTIONS_DISABLED),
    (AgeRestricted, FailureReason.ACCESS_RESTRICTED),
    (NoTranscriptFound, FailureReason.NO_TRANSCRIPT),
    (VideoUnavailable, FailureReason.VIDEO_UNAVAILABLE),
    (VideoUnplayable, FailureReason.VIDEO_UNAVAILABLE),
    (RequestBlocked, FailureReason.RATE_LIMITED),
)


def classify_library_error(exc: BaseException) -> FailureReason:
    for error_type, reason in _ERROR_REASONS:
        if isinstance(exc, error_type):
            return reason
    if isinstance(exc, CouldNotRetrieveTranscript):
        return FailureReason.EXHAUSTED
    return FailureReason.NETWORK


class TimeoutSession(requests.Session):
    """requests.Session that applies a default timeout to every request."""

    def __init__(self, timeout_s: float) -> None:
        super().__init__()
        self.timeout_s = timeout_s

    def request(self, method, url, **kwargs):  # noqa: ANN001
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.timeout_s
        return super().request(method, url, **kwargs)


class LibraryBackend:
    """Secondary transcript source using youtube-transcript-api."""

    def __init__(
        self,
        fallback_language: str = SECONDARY_FALLBACK_LANGUAGE,
        api_factory: Callable[..., Any] = YouTubeTranscriptApi,
        timeout_s: float = REQUEST_TIMEOUT_S,
    ) -> None:
        self._fallback_language = fallback_language
        self._api_factory = api_factory
        self._timeout_s = timeout_s

    def _languages(self, preferred_language: Optional[str]) -> List[str]:
        languages = []
        if preferred_language:
            languages.append(preferred_language)
        if self._fallback_language not in languages:
            languages.append(self._fallback_language)
        return languages

    def _fetch_blocking(self, video_id: str, preferred_language: Optional[str]) -> Any:
        with TimeoutSession(self._timeout_s) as session:
            api = self._api_factory(http_client=session)
            languages = self._languages(preferred_language)
            try:
                return api.fetch(video_id, languages=languages)
            except NoTranscriptFound:
                logger.info("No %s transcript for %s, taking the first listed", languages, video_id)
                first = next(iter(api.list(video_id)), None)
                if first is None:
                    raise
                return first.fetch()

    async def fetch(self, video_id: str, preferred_language: Optional[str] = None) -> AcquisitionResult:
        """Fetch a transcript through the library.

        Raises:
            AcquisitionError: classified library or transport failure.
        """
        try:
            fetched = await asyncio.to_thread(self._fetch_blocking, video_id, preferred_language)
        except AcquisitionError:
            raise
        except Exception as exc:
            reason = classify_library_error(exc)
            raise AcquisitionError(reason, "{}: {}".format(type(exc).__name__, exc)) from exc

        segments: List[CaptionSegment] = []
        for snippet in fetched:
            text = normalize_text(getattr(snippet, "text", ""))
            if not text:
                continue
            segments.append(CaptionSegment(
                start_s=max(0.0, float(getattr(snippet, "start", 0.0) or 0.0)),
                duration_s=max(0.0, float(getattr(snippet, "duration", 0.0) or 0.0)),
                text=text,
            ))

        if not segments:
            raise AcquisitionError(FailureReason.NO_TRANSCRIPT, "Library transcript had no text")

        return AcquisitionResult(
            segments=segments,
            language_code=str(getattr(fetched, "language_code", "") or ""),
            method=SECONDARY_METHOD,
        )
