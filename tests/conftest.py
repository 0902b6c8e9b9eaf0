"""Shared test fixtures for the caption_fetcher test suite.

WHY: Most test modules need the same upstream shapes: a watch page that
embeds a player configuration, json3 and legacy caption bodies, and an
in-process fake of the whole upstream. Centralizing them keeps every test
on the same realistic data.

HOW: Plain builder functions produce page HTML and caption payloads.
FakeUpstream is an httpx.MockTransport handler that serves a watch page and
per-track caption bodies and records every request. Fixtures wire these into
YouTubeClient and TranscriptEngine instances that never touch the network.

RULES:
- No test reaches the real network
- Retry configs in fixtures never sleep
- Track locators use the real timed-text path shape
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

import httpx
import pytest

from caption_fetcher.api.client import YouTubeClient
from caption_fetcher.core.engine import TranscriptEngine
from caption_fetcher.core.errors import AcquisitionError, FailureReason
from caption_fetcher.core.ir import KIND_AUTO, KIND_MANUAL, CaptionTrack
from caption_fetcher.core.retry import RetryConfig

VIDEO_ID = "dQw4w9WgXcQ"
BASE_URL = "https://www.youtube.com"

# JSON Schema of the public transcript row.
ROW_SCHEMA = {
    "type": "object",
    "required": ["success", "language", "segments", "raw"],
    "additionalProperties": False,
    "properties": {
        "success": {"type": "boolean"},
        "language": {"type": "string"},
        "raw": {"type": "string"},
        "error": {"type": "string"},
        "method": {"type": "string"},
        "segments": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["start", "duration", "text"],
                "additionalProperties": False,
                "properties": {
                    "start": {"type": "number", "minimum": 0},
                    "duration": {"type": "number", "minimum": 0},
                    "text": {"type": "string", "minLength": 1},
                },
            },
        },
    },
}


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def caption_track_entry(language: str, auto: bool = False, name: Optional[str] = None) -> Dict[str, Any]:
    """One captionTracks entry as it appears in the player configuration."""
    entry = {
        "baseUrl": "/api/timedtext?v={}&lang={}&kind={}&fmt=srv3".format(
            VIDEO_ID, language, "asr" if auto else ""
        ),
        "languageCode": language,
        "name": {"simpleText": name or language},
    }
    if auto:
        entry["kind"] = "asr"
    return entry


def player_response(
    tracks: Optional[List[Dict[str, Any]]] = None,
    playability: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    response: Dict[str, Any] = {"playabilityStatus": playability or {"status": "OK"}}
    if tracks is not None:
        response["captions"] = {
            "playerCaptionsTracklistRenderer": {"captionTracks": tracks},
        }
    return response


def watch_page(
    tracks: Optional[List[Dict[str, Any]]] = None,
    playability: Optional[Dict[str, Any]] = None,
    assignment_only: bool = False,
) -> str:
    """Build watch page HTML embedding a player response.

    assignment_only spaces the JSON keys so only the
    ``ytInitialPlayerResponse = {...}`` pattern can find it.
    """
    separators = (", ", " : ") if assignment_only else (",", ":")
    blob = json.dumps(player_response(tracks, playability), separators=separators)
    return (
        "<!DOCTYPE html><html><head><title>video</title></head><body>"
        "<script>var ytInitialPlayerResponse = {};"
        "var meta = {{\"x\": \"}}{{\"}};</script></body></html>".format(blob)
    )


def json3_payload(events: List[Tuple[int, int, str]]) -> bytes:
    """json3 body from (tStartMs, dDurationMs, text) triples."""
    return json.dumps({
        "wireMagic": "pb3",
        "events": [
            {"tStartMs": start, "dDurationMs": duration, "segs": [{"utf8": text}]}
            for start, duration, text in events
        ],
    }).encode("utf-8")


def timedtext_payload(cues: List[Tuple[str, str, str]]) -> bytes:
    """Legacy markup body from (start, dur, text) triples."""
    body = "".join(
        '<text start="{}" dur="{}">{}</text>'.format(start, dur, text)
        for start, dur, text in cues
    )
    return '<?xml version="1.0" encoding="utf-8" ?><transcript>{}</transcript>'.format(body).encode("utf-8")


def make_track(language: str, kind: str = KIND_MANUAL) -> CaptionTrack:
    return CaptionTrack(
        locator="{}/api/timedtext?v={}&lang={}&kind={}".format(
            BASE_URL, VIDEO_ID, language, "asr" if kind == KIND_AUTO else ""
        ),
        language_code=language,
        kind=kind,
    )


# ---------------------------------------------------------------------------
# Fake upstream
# ---------------------------------------------------------------------------


class FakeUpstream:
    """MockTransport handler serving one watch page and per-track bodies.

    captions maps (language, kind) to a body (bytes) or a status code (int).
    """

    def __init__(
        self,
        page: Optional[str] = None,
        captions: Optional[Dict[Tuple[str, str], Any]] = None,
        page_status: int = 200,
    ) -> None:
        self.page = page if page is not None else watch_page([])
        self.captions = captions or {}
        self.page_status = page_status
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/watch":
            if self.page_status != 200:
                return httpx.Response(self.page_status, text="error")
            return httpx.Response(200, text=self.page)
        if request.url.path == "/api/timedtext":
            language = request.url.params.get("lang", "")
            kind = KIND_AUTO if request.url.params.get("kind") == "asr" else KIND_MANUAL
            body = self.captions.get((language, kind), b"")
            if isinstance(body, int):
                return httpx.Response(body, text="error")
            return httpx.Response(200, content=body)
        return httpx.Response(404, text="not found")

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    def caption_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/api/timedtext"]

    def client_factory(self):
        transport = httpx.MockTransport(self)
        return lambda: YouTubeClient(base_url=BASE_URL, transport=transport)


def failing_secondary(reason: FailureReason = FailureReason.NO_TRANSCRIPT) -> AsyncMock:
    """A secondary backend whose fetch always raises the given reason."""
    secondary = AsyncMock()
    secondary.fetch.side_effect = AcquisitionError(reason)
    return secondary


def make_engine(upstream: FakeUpstream, secondary=None, max_attempts: int = 2) -> TranscriptEngine:
    return TranscriptEngine(
        client_factory=upstream.client_factory(),
        secondary=secondary if secondary is not None else failing_secondary(),
        retry=RetryConfig.no_delay(max_attempts=max_attempts, attempt_timeout_s=5.0),
        priority=("en", "es"),
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def english_upstream() -> FakeUpstream:
    """A video with one manual English track that decodes as json3."""
    return FakeUpstream(
        page=watch_page([caption_track_entry("en", name="English")]),
        captions={
            ("en", KIND_MANUAL): json3_payload([
                (0, 1500, "Hello &amp; welcome"),
                (1500, 2000, "to the\nshow"),
            ]),
        },
    )


@pytest.fixture
def no_delay_retry() -> RetryConfig:
    return RetryConfig.no_delay(max_attempts=3, attempt_timeout_s=5.0)
