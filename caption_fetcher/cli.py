"""Command-line interface for the Caption Fetcher.

WHY: Users and scripts need transcripts without running the HTTP server.
The CLI wires the same validate → acquire → assemble path behind a single
command and accepts watch URLs as well as bare video IDs.

HOW: Uses argparse to accept one or more IDs/URLs plus language, output
format, concurrency and retry options. Each argument is reduced to a video
ID with extract_video_id(), then all of them go through acquire_many() with
a bounded concurrency window. Runs via asyncio.run(). Status messages go to
stderr; rows (or plain text) go to stdout in input order.

RULES:
- Positional arguments: video IDs or YouTube URLs (one or more)
- --format json prints one JSON row per input line; text prints raw text
- Arguments that contain no video ID still produce an (invalid) row
- Status output goes to stderr (not stdout)
- Exit status 1 when any input produced no transcript
- Python 3.9.6 compatible: no match/case, no X | Y unions, no slots=True
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from caption_fetcher.config import BATCH_CONCURRENCY, RETRY_MAX_ATTEMPTS
from caption_fetcher.core.assembler import AssembledResponse, respond
from caption_fetcher.core.engine import TranscriptEngine, acquire_many
from caption_fetcher.core.retry import RetryConfig
from caption_fetcher.core.validation import extract_video_id


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _resolve_ids(values: List[str]) -> List[str]:
    """Reduce each argument to a video ID, keeping unparseable ones as given."""
    resolved = []
    for value in values:
        video_id = extract_video_id(value)
        if video_id is None:
            _status("Warning: no video ID found in {!r}".format(value))
            resolved.append(value.strip())
        else:
            resolved.append(video_id)
    return resolved


def _render(video_id: str, assembled: AssembledResponse, output_format: str) -> None:
    body = assembled.body
    if output_format == "text":
        if body.get("segments"):
            print(body["raw"])
        else:
            _status("{}: {}".format(video_id, body.get("error", "no transcript")))
        return
    row = {"videoId": video_id}
    row.update(body)
    print(json.dumps(row, ensure_ascii=False))


async def _run(args: argparse.Namespace) -> int:
    retry = RetryConfig.from_env()
    if args.max_attempts is not None:
        retry = RetryConfig(
            max_attempts=args.max_attempts,
            base_delay_s=retry.base_delay_s,
            max_delay_s=retry.max_delay_s,
            attempt_timeout_s=retry.attempt_timeout_s,
        )
    engine = TranscriptEngine(retry=retry)
    video_ids = _resolve_ids(args.videos)

    _status("Fetching {} transcript(s)...".format(len(video_ids)))
    results = await acquire_many(
        video_ids,
        lambda video_id: respond(engine, video_id, args.lang),
        concurrency=args.concurrency,
    )

    missing = 0
    for video_id, assembled in zip(video_ids, results):
        _render(video_id, assembled, args.format)
        if not assembled.body.get("segments"):
            missing += 1
        else:
            _status("  {}: {} segments ({}, {})".format(
                video_id,
                len(assembled.body["segments"]),
                assembled.body.get("language") or "unknown language",
                assembled.body.get("method", "n/a"),
            ))

    if missing:
        _status("{} of {} video(s) returned no transcript".format(missing, len(video_ids)))
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable; tests can inspect the parser without touching the network.
    """
    parser = argparse.ArgumentParser(
        prog="caption_fetcher",
        description="Fetch YouTube caption transcripts as timed segments or plain text.",
    )

    parser.add_argument(
        "videos",
        nargs="+",
        help="Video IDs or YouTube URLs (watch, youtu.be, embed, shorts).",
    )

    parser.add_argument(
        "--lang",
        default=None,
        help="Preferred language code (e.g. 'en', 'es', 'pt-BR').",
    )

    parser.add_argument(
        "--format",
        choices=("json", "text"),
        default="json",
        help="Output format: one JSON row per video, or raw text (default: %(default)s).",
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=BATCH_CONCURRENCY,
        help="Maximum videos fetched at once (default: %(default)s).",
    )

    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Attempts per acquisition path (default: {}).".format(RETRY_MAX_ATTEMPTS),
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log tier attempts and retries to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )
    exit_code = asyncio.run(_run(args))
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
