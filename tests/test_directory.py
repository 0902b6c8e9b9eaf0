"""Tests for the caption track directory resolver.

WHY: The watch page is the only source of the track list, and its layout
shifts between page builds. These tests cover both extraction patterns and
every playability classification.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from caption_fetcher.api.client import YouTubeClient
from caption_fetcher.config import USER_AGENT
from caption_fetcher.core.directory import (
    check_playability,
    extract_player_config,
    parse_caption_tracks,
    resolve_tracks,
    tracks_from_page,
)
from caption_fetcher.core.errors import FailureReason, TrackDirectoryError
from caption_fetcher.core.ir import KIND_AUTO, KIND_MANUAL
from conftest import BASE_URL, VIDEO_ID, FakeUpstream, caption_track_entry, watch_page


# ---------------------------------------------------------------------------
# Extraction patterns
# ---------------------------------------------------------------------------


class TestExtraction:
    """Both embedding patterns yield the same track list."""

    def test_marker_pattern(self):
        page = watch_page([caption_track_entry("en"), caption_track_entry("es", auto=True)])
        tracks = tracks_from_page(page, BASE_URL)

        assert [(t.language_code, t.kind) for t in tracks] == [("en", KIND_MANUAL), ("es", KIND_AUTO)]

    def test_assignment_pattern(self):
        page = watch_page([caption_track_entry("fr")], assignment_only=True)
        assert '"captions":' not in page

        tracks = tracks_from_page(page, BASE_URL)

        assert [t.language_code for t in tracks] == ["fr"]

    def test_nested_braces_and_escaped_quotes(self):
        entry = caption_track_entry("en", name='Eng {"lish"} }')
        tracks = tracks_from_page(watch_page([entry]), BASE_URL)

        assert tracks[0].display_name == 'Eng {"lish"} }'

    @pytest.mark.parametrize("value", ["false", "null", '"none"', "[]"])
    def test_non_object_marker_value_falls_through_to_assignment(self, value):
        earlier = '<script>var cfg = {{"captions":{}, "other": {{"x": 1}}}};</script>'.format(value)
        page = earlier + watch_page([caption_track_entry("en")], assignment_only=True)

        tracks = tracks_from_page(page, BASE_URL)

        assert [t.language_code for t in tracks] == ["en"]

    def test_marker_object_without_tracklist_falls_through_to_assignment(self):
        earlier = '<script>var cfg = {"captions":{"enabled": true}};</script>'
        page = earlier + watch_page([caption_track_entry("de", auto=True)], assignment_only=True)

        captions, _ = extract_player_config(page)

        assert captions["playerCaptionsTracklistRenderer"]["captionTracks"][0]["languageCode"] == "de"

    def test_later_marker_with_tracklist_is_preferred(self):
        earlier = '<script>var cfg = {"captions":{"enabled": true}};</script>'
        page = earlier + watch_page([caption_track_entry("ko")])

        assert [t.language_code for t in tracks_from_page(page, BASE_URL)] == ["ko"]

    def test_non_object_playability_value_is_skipped(self):
        earlier = '<script>var flags = {"playabilityStatus":"UNKNOWN"};</script>'
        page = earlier + watch_page(
            [caption_track_entry("en")],
            playability={"status": "LOGIN_REQUIRED", "reason": "Sign in"},
        )

        with pytest.raises(TrackDirectoryError) as exc_info:
            tracks_from_page(page, BASE_URL)
        assert exc_info.value.reason == FailureReason.ACCESS_RESTRICTED

    def test_no_player_config_is_unavailable(self):
        with pytest.raises(TrackDirectoryError) as exc_info:
            extract_player_config("<html><body>nothing here</body></html>")
        assert exc_info.value.reason == FailureReason.VIDEO_UNAVAILABLE

    def test_recaptcha_page_is_rate_limited(self):
        page = '<html><form><div class="g-recaptcha" data-sitekey="x"></div></form></html>'
        with pytest.raises(TrackDirectoryError) as exc_info:
            extract_player_config(page)
        assert exc_info.value.reason == FailureReason.RATE_LIMITED


# ---------------------------------------------------------------------------
# Track parsing
# ---------------------------------------------------------------------------


class TestParseCaptionTracks:
    """parse_caption_tracks builds CaptionTrack objects in declared order."""

    def test_relative_locator_is_made_absolute(self):
        tracks = parse_caption_tracks(
            {"playerCaptionsTracklistRenderer": {"captionTracks": [caption_track_entry("en")]}},
            BASE_URL,
        )
        assert tracks[0].locator.startswith(BASE_URL + "/api/timedtext?")

    def test_absolute_locator_is_kept(self):
        captions = {"playerCaptionsTracklistRenderer": {"captionTracks": [
            {"baseUrl": "https://cdn.example.com/tt?lang=en", "languageCode": "en"},
        ]}}
        assert parse_caption_tracks(captions, BASE_URL)[0].locator == "https://cdn.example.com/tt?lang=en"

    def test_display_name_from_runs(self):
        captions = {"playerCaptionsTracklistRenderer": {"captionTracks": [
            {"baseUrl": "/tt", "languageCode": "de", "name": {"runs": [{"text": "Deutsch"}, {"text": " (auto)"}]}},
        ]}}
        assert parse_caption_tracks(captions, BASE_URL)[0].display_name == "Deutsch (auto)"

    def test_incomplete_entries_are_skipped(self):
        captions = {"playerCaptionsTracklistRenderer": {"captionTracks": [
            {"languageCode": "en"},
            {"baseUrl": "/tt"},
            "junk",
            {"baseUrl": "/tt?lang=it", "languageCode": "it"},
        ]}}
        assert [t.language_code for t in parse_caption_tracks(captions, BASE_URL)] == ["it"]

    def test_no_tracks_means_captions_disabled(self):
        with pytest.raises(TrackDirectoryError) as exc_info:
            tracks_from_page(watch_page([]), BASE_URL)
        assert exc_info.value.reason == FailureReason.CAPTIONS_DISABLED

    def test_missing_captions_object_means_captions_disabled(self):
        with pytest.raises(TrackDirectoryError) as exc_info:
            tracks_from_page(watch_page(None), BASE_URL)
        assert exc_info.value.reason == FailureReason.CAPTIONS_DISABLED


# ---------------------------------------------------------------------------
# Playability
# ---------------------------------------------------------------------------


class TestPlayability:
    """Non-OK playability statuses are classified before tracks are read."""

    @pytest.mark.parametrize(
        "status, reason, expected",
        [
            ("ERROR", "Video unavailable", FailureReason.VIDEO_UNAVAILABLE),
            ("UNPLAYABLE", "This video is not available", FailureReason.VIDEO_UNAVAILABLE),
            ("LOGIN_REQUIRED", "Sign in to confirm your age", FailureReason.ACCESS_RESTRICTED),
            ("AGE_VERIFICATION_REQUIRED", None, FailureReason.ACCESS_RESTRICTED),
            ("UNPLAYABLE", "This video is private", FailureReason.ACCESS_RESTRICTED),
            ("LOGIN_REQUIRED", "Sign in to confirm you're not a bot", FailureReason.RATE_LIMITED),
        ],
    )
    def test_classification(self, status, reason, expected):
        playability = {"status": status}
        if reason is not None:
            playability["reason"] = reason
        with pytest.raises(TrackDirectoryError) as exc_info:
            check_playability(playability)
        assert exc_info.value.reason == expected

    def test_ok_and_missing_pass(self):
        check_playability({"status": "OK"})
        check_playability(None)

    def test_other_status_defers_to_tracks(self):
        page = watch_page([caption_track_entry("en")], playability={"status": "LIVE_STREAM_OFFLINE"})
        assert len(tracks_from_page(page, BASE_URL)) == 1

    def test_unplayable_page_raises_before_tracks(self):
        page = watch_page([caption_track_entry("en")], playability={"status": "ERROR", "reason": "gone"})
        with pytest.raises(TrackDirectoryError) as exc_info:
            tracks_from_page(page, BASE_URL)
        assert exc_info.value.reason == FailureReason.VIDEO_UNAVAILABLE


# ---------------------------------------------------------------------------
# resolve_tracks over HTTP
# ---------------------------------------------------------------------------


class TestResolveTracks:
    """resolve_tracks fetches the watch page through the client."""

    def test_fetches_watch_page_for_video(self):
        upstream = FakeUpstream(page=watch_page([caption_track_entry("en")]))

        async def run():
            async with upstream.client_factory()() as client:
                return await resolve_tracks(client, VIDEO_ID)

        tracks = asyncio.run(run())

        assert [t.language_code for t in tracks] == ["en"]
        request = upstream.requests[0]
        assert request.url.path == "/watch"
        assert request.url.params["v"] == VIDEO_ID

    def test_sends_consent_cookie_and_user_agent(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["cookie"] = request.headers.get("cookie", "")
            seen["ua"] = request.headers.get("user-agent", "")
            return httpx.Response(200, text=watch_page([caption_track_entry("en")]))

        async def run():
            async with YouTubeClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as client:
                await resolve_tracks(client, VIDEO_ID)

        asyncio.run(run())

        assert "CONSENT=YES+cb" in seen["cookie"]
        assert seen["ua"] == USER_AGENT
