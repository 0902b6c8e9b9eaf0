"""Caption track directory resolver.

WHY: The platform has no stable endpoint that lists a video's caption
tracks. The list only exists inside the player configuration embedded in the
public watch page, and the way it is embedded varies between page builds.

HOW: Two extraction patterns are tried against the page body:
  1. the structural ``"captions":`` marker, decoding the object that follows
     it (plus the ``"playabilityStatus":`` object when present);
  2. the ``ytInitialPlayerResponse = {...}`` variable assignment, decoding the
     whole player response.
Objects are decoded with json.JSONDecoder.raw_decode from the opening brace,
so nested braces and escaped quotes are handled correctly. The playability
status is checked before tracks are read.

RULES:
- Unplayable/removed videos → TrackDirectoryError(VIDEO_UNAVAILABLE)
- Private, login-gated, or age-gated videos → ACCESS_RESTRICTED
- Bot-check / reCAPTCHA pages → RATE_LIMITED
- Player config found but no tracks → CAPTIONS_DISABLED
- Neither pattern matches → VIDEO_UNAVAILABLE
- Tracks are returned in upstream declaration order; never an empty list
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from caption_fetcher.api.client import YouTubeClient
from caption_fetcher.core.errors import FailureReason, TrackDirectoryError
from caption_fetcher.core.ir import KIND_AUTO, KIND_MANUAL, CaptionTrack

logger = logging.getLogger(__name__)

_CAPTIONS_MARKER = '"captions":'
_PLAYABILITY_MARKER = '"playabilityStatus":'
_PLAYER_RESPONSE_RE = re.compile(r"ytInitialPlayerResponse\s*=\s*")
_RECAPTCHA_MARKERS = ('class="g-recaptcha"', "www.google.com/recaptcha")

_UNAVAILABLE_STATUSES = frozenset({"ERROR", "UNPLAYABLE"})
_RESTRICTED_STATUSES = frozenset({
    "LOGIN_REQUIRED",
    "AGE_VERIFICATION_REQUIRED",
    "AGE_CHECK_REQUIRED",
    "CONTENT_CHECK_REQUIRED",
})

_TRACKLIST_KEY = "playerCaptionsTracklistRenderer"

_decoder = json.JSONDecoder()
_WHITESPACE_RE = re.compile(r"\s*")


def _decode_object_at(page: str, index: int) -> Optional[Dict[str, Any]]:
    """Decode the JSON object starting at index, after optional whitespace.

    Returns None when the value at index is not an object.
    """
    start = _WHITESPACE_RE.match(page, index).end()
    if not page.startswith("{", start):
        return None
    try:
        value, _ = _decoder.raw_decode(page, start)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def _objects_after(page: str, marker: str):
    """Yield each object that directly follows an occurrence of marker."""
    pos = page.find(marker)
    while pos >= 0:
        value = _decode_object_at(page, pos + len(marker))
        if value is not None:
            yield value
        pos = page.find(marker, pos + len(marker))


def _has_tracklist(captions: Optional[Dict[str, Any]]) -> bool:
    return isinstance(captions, dict) and isinstance(captions.get(_TRACKLIST_KEY), dict)


def _extract_by_marker(page: str) -> Optional[Tuple[Dict[str, Any], Optional[Dict[str, Any]]]]:
    """Primary pattern: the object following ``"captions":``.

    Occurrences whose value is not an object (false, null, a string) are
    skipped; an object carrying a tracklist renderer is preferred.
    """
    candidates = list(_objects_after(page, _CAPTIONS_MARKER))
    if not candidates:
        return None
    captions = next((c for c in candidates if _has_tracklist(c)), candidates[0])
    playability = next(_objects_after(page, _PLAYABILITY_MARKER), None)
    return captions, playability


def _extract_by_assignment(page: str) -> Optional[Tuple[Dict[str, Any], Optional[Dict[str, Any]]]]:
    """Alternate pattern: the ``ytInitialPlayerResponse = {...}`` assignment."""
    match = _PLAYER_RESPONSE_RE.search(page)
    if match is None:
        return None
    player_response = _decode_object_at(page, match.end())
    if player_response is None:
        return None
    captions = player_response.get("captions")
    return (captions if isinstance(captions, dict) else {}), player_response.get("playabilityStatus")


def extract_player_config(page: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """Return the (captions, playabilityStatus) objects embedded in a watch page.

    The first pattern whose captions object carries a tracklist wins. When
    none does, the first configuration found is returned as is.

    Raises:
        TrackDirectoryError: No player configuration could be located.
    """
    fallback = None
    for extractor in (_extract_by_marker, _extract_by_assignment):
        found = extractor(page)
        if found is None:
            continue
        if _has_tracklist(found[0]):
            logger.debug("Player configuration located via %s", extractor.__name__)
            return found
        if fallback is None:
            fallback = found

    if fallback is not None:
        return fallback

    if any(marker in page for marker in _RECAPTCHA_MARKERS):
        raise TrackDirectoryError(
            FailureReason.RATE_LIMITED,
            "Watch page returned a bot-check challenge",
        )
    raise TrackDirectoryError(
        FailureReason.VIDEO_UNAVAILABLE,
        "No player configuration found in watch page",
    )


def check_playability(playability: Optional[Dict[str, Any]]) -> None:
    """Raise a classified error when the player reports the video unplayable."""
    if not isinstance(playability, dict):
        return
    status = str(playability.get("status", "OK")).upper()
    if status == "OK":
        return

    reason_text = str(playability.get("reason") or status)
    lowered = reason_text.lower()
    if "not a bot" in lowered:
        raise TrackDirectoryError(FailureReason.RATE_LIMITED, reason_text)
    if status in _RESTRICTED_STATUSES or "private" in lowered:
        raise TrackDirectoryError(FailureReason.ACCESS_RESTRICTED, reason_text)
    if status in _UNAVAILABLE_STATUSES:
        raise TrackDirectoryError(FailureReason.VIDEO_UNAVAILABLE, reason_text)
    # LIVE_STREAM_OFFLINE and friends still expose a player; let tracks decide.
    logger.info("Non-OK playability status %s: %s", status, reason_text)


def _display_name(name: Any) -> str:
    if not isinstance(name, dict):
        return ""
    if "simpleText" in name:
        return str(name["simpleText"])
    runs = name.get("runs")
    if isinstance(runs, list):
        return "".join(str(run.get("text", "")) for run in runs if isinstance(run, dict))
    return ""


def parse_caption_tracks(captions: Dict[str, Any], base_url: str) -> List[CaptionTrack]:
    """Build CaptionTrack objects from a ``captions`` object, in declared order.

    Entries without a ``baseUrl`` or ``languageCode`` are skipped. Relative
    locators are made absolute against base_url.
    """
    renderer = captions.get(_TRACKLIST_KEY) if _has_tracklist(captions) else {}
    raw_tracks = renderer.get("captionTracks") or []

    tracks: List[CaptionTrack] = []
    for entry in raw_tracks:
        if not isinstance(entry, dict):
            continue
        locator = entry.get("baseUrl")
        language_code = entry.get("languageCode")
        if not locator or not language_code:
            continue
        tracks.append(CaptionTrack(
            locator=urljoin(base_url + "/", str(locator)),
            language_code=str(language_code),
            kind=KIND_AUTO if entry.get("kind") == "asr" else KIND_MANUAL,
            display_name=_display_name(entry.get("name")),
        ))
    return tracks


def tracks_from_page(page: str, base_url: str) -> List[CaptionTrack]:
    """Resolve the caption track list from watch page HTML.

    Raises:
        TrackDirectoryError: classified as described in the module RULES.
    """
    captions, playability = extract_player_config(page)
    check_playability(playability)

    tracks = parse_caption_tracks(captions, base_url)
    if not tracks:
        raise TrackDirectoryError(
            FailureReason.CAPTIONS_DISABLED,
            "Player configuration declares no caption tracks",
        )
    return tracks


async def resolve_tracks(client: YouTubeClient, video_id: str) -> List[CaptionTrack]:
    """Fetch the watch page for video_id and return its caption tracks."""
    page = await client.fetch_watch_page(video_id)
    tracks = tracks_from_page(page, client.base_url)
    logger.info(
        "Resolved %d caption track(s) for %s: %s",
        len(tracks),
        video_id,
        ", ".join("{}/{}".format(t.language_code, t.kind) for t in tracks),
    )
    return tracks
