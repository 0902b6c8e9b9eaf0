"""Tests for the command-line interface.

HOW: Parser behavior is checked directly through build_parser(). Full runs
patch TranscriptEngine in the cli module so main() exercises argument
handling, batching and output without touching the network.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from caption_fetcher.cli import build_parser, main
from caption_fetcher.config import BATCH_CONCURRENCY
from caption_fetcher.core.errors import AcquisitionFailure, FailureReason
from caption_fetcher.core.ir import AcquisitionResult, CaptionSegment
from conftest import VIDEO_ID


class TestBuildParser:
    def test_defaults(self):
        args = build_parser().parse_args([VIDEO_ID])

        assert args.videos == [VIDEO_ID]
        assert args.lang is None
        assert args.format == "json"
        assert args.concurrency == BATCH_CONCURRENCY
        assert args.max_attempts is None
        assert args.verbose is False

    def test_options(self):
        args = build_parser().parse_args(
            ["a", "b", "--lang", "es", "--format", "text", "--concurrency", "2", "--max-attempts", "5", "--verbose"]
        )

        assert args.videos == ["a", "b"]
        assert (args.lang, args.format, args.concurrency, args.max_attempts, args.verbose) == ("es", "text", 2, 5, True)

    def test_requires_a_video(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([VIDEO_ID, "--format", "srt"])


def _stub_engine(outcomes):
    engine = AsyncMock()

    async def acquire(video_id, preferred_language=None):
        outcome = outcomes[video_id]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    engine.acquire.side_effect = acquire
    return engine


def _result(text: str) -> AcquisitionResult:
    return AcquisitionResult([CaptionSegment(0.0, 1.0, text)], "en", "manual-priority-en")


class TestMain:
    """main() prints one row per input, in input order."""

    def test_json_rows_for_urls_and_ids(self, capsys):
        engine = _stub_engine({VIDEO_ID: _result("hello"), "abcdefghijk": _result("world")})

        with patch("caption_fetcher.cli.TranscriptEngine", return_value=engine):
            main(["https://youtu.be/" + VIDEO_ID, "abcdefghijk"])

        lines = capsys.readouterr().out.strip().splitlines()
        rows = [json.loads(line) for line in lines]
        assert [row["videoId"] for row in rows] == [VIDEO_ID, "abcdefghijk"]
        assert [row["raw"] for row in rows] == ["hello", "world"]

    def test_text_format_prints_raw(self, capsys):
        engine = _stub_engine({VIDEO_ID: _result("just the words")})

        with patch("caption_fetcher.cli.TranscriptEngine", return_value=engine):
            main([VIDEO_ID, "--format", "text", "--lang", "en"])

        captured = capsys.readouterr()
        assert captured.out.strip() == "just the words"
        engine.acquire.assert_awaited_once_with(VIDEO_ID, "en")

    def test_missing_transcript_exits_nonzero(self, capsys):
        engine = _stub_engine({VIDEO_ID: AcquisitionFailure(FailureReason.CAPTIONS_DISABLED)})

        with patch("caption_fetcher.cli.TranscriptEngine", return_value=engine):
            with pytest.raises(SystemExit) as exc_info:
                main([VIDEO_ID])

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert json.loads(captured.out)["error"] == "Transcripts are disabled for this video"
        assert "returned no transcript" in captured.err

    def test_unparseable_argument_gets_invalid_row(self, capsys):
        engine = _stub_engine({})

        with patch("caption_fetcher.cli.TranscriptEngine", return_value=engine):
            with pytest.raises(SystemExit):
                main(["not a video!"])

        row = json.loads(capsys.readouterr().out)
        assert row["success"] is False
        engine.acquire.assert_not_called()

    def test_max_attempts_reaches_engine(self):
        engine = _stub_engine({VIDEO_ID: _result("x")})

        with patch("caption_fetcher.cli.TranscriptEngine", return_value=engine) as engine_cls:
            main([VIDEO_ID, "--max-attempts", "7"])

        assert engine_cls.call_args.kwargs["retry"].max_attempts == 7
