"""Transcript acquisition engine: primary path, retries, secondary path.

WHY: No single upstream route is reliable. The engine composes the pieces
into one call that tries hard, in a fixed order, and either returns a
transcript or one classified failure.

HOW: acquire() opens one YouTubeClient for the request and runs the primary
attempt (resolve tracks → select tier → fetch/decode) inside the retry
envelope. If every primary attempt fails, the secondary backend runs inside
its own retry envelope. acquire_many() fans acquire() out over many IDs with
a bounded concurrency window.

RULES:
- Primary retries always finish before the secondary path starts
- Both paths failing raises AcquisitionFailure with the most specific reason
- No state is shared between acquire() calls; locators die with the request
- acquire_many() preserves input order and never raises for one bad ID
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional, Sequence

from caption_fetcher.api.client import YouTubeClient
from caption_fetcher.config import BATCH_CONCURRENCY, LANGUAGE_PRIORITY
from caption_fetcher.core.directory import resolve_tracks
from caption_fetcher.core.errors import AcquisitionFailure, most_specific, reason_of
from caption_fetcher.core.fetcher import fetch_track
from caption_fetcher.core.ir import AcquisitionResult
from caption_fetcher.core.retry import RetryConfig, with_retry
from caption_fetcher.core.secondary import LibraryBackend
from caption_fetcher.core.selector import select_transcript

logger = logging.getLogger(__name__)


class TranscriptEngine:
    """Acquire one video's transcript through every available path.

    RULES:
    - client_factory builds a fresh YouTubeClient (async context manager)
    - secondary defaults to LibraryBackend()
    - retry defaults to RetryConfig.from_env(); secondary_retry to retry
    """

    def __init__(
        self,
        client_factory: Callable[[], YouTubeClient] = YouTubeClient,
        secondary: Optional[Any] = None,
        retry: Optional[RetryConfig] = None,
        secondary_retry: Optional[RetryConfig] = None,
        priority: Sequence[str] = LANGUAGE_PRIORITY,
        sleep: Optional[Callable[[float], Any]] = None,
    ) -> None:
        self._client_factory = client_factory
        self._secondary = secondary if secondary is not None else LibraryBackend()
        self._retry = retry or RetryConfig.from_env()
        self._secondary_retry = secondary_retry or self._retry
        self._priority = tuple(priority)
        self._sleep = sleep

    async def _primary_attempt(
        self,
        client: YouTubeClient,
        video_id: str,
        preferred_language: Optional[str],
    ) -> AcquisitionResult:
        tracks = await resolve_tracks(client, video_id)
        return await select_transcript(
            tracks,
            lambda track: fetch_track(client, track),
            preferred_language=preferred_language,
            priority=self._priority,
        )

    async def acquire(
        self,
        video_id: str,
        preferred_language: Optional[str] = None,
    ) -> AcquisitionResult:
        """Return a transcript for video_id or raise AcquisitionFailure.

        Args:
            video_id: A validated 11-character video ID.
            preferred_language: Optional caller language hint ("es", "pt-BR").
        """
        primary_error: Optional[BaseException] = None
        try:
            async with self._client_factory() as client:
                return await with_retry(
                    lambda: self._primary_attempt(client, video_id, preferred_language),
                    self._retry,
                    label="primary acquisition for {}".format(video_id),
                    sleep=self._sleep,
                )
        except Exception as exc:
            primary_error = exc
            logger.warning("Primary path exhausted for %s: %s", video_id, exc)

        try:
            return await with_retry(
                lambda: self._secondary.fetch(video_id, preferred_language),
                self._secondary_retry,
                label="secondary acquisition for {}".format(video_id),
                sleep=self._sleep,
            )
        except Exception as exc:
            logger.warning("Secondary path exhausted for %s: %s", video_id, exc)
            reason = most_specific(reason_of(primary_error), reason_of(exc))
            raise AcquisitionFailure(
                reason,
                "primary: {}; secondary: {}".format(primary_error, exc),
            ) from exc


async def acquire_many(
    video_ids: Sequence[str],
    handler: Callable[[str], Any],
    concurrency: int = BATCH_CONCURRENCY,
) -> List[Any]:
    """Run handler over video_ids with at most `concurrency` in flight.

    handler is any coroutine function of one ID (typically a bound
    respond() call); its results are returned in input order.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _run(video_id: str) -> Any:
        async with semaphore:
            return await handler(video_id)

    return list(await asyncio.gather(*(_run(video_id) for video_id in video_ids)))
