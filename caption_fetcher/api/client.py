"""Async HTTP client for the video platform's public watch and timed-text pages.

WHY: The engine needs two upstream reads: the watch page (to discover the
caption track directory) and a caption track body. This module encapsulates
both behind a single client class so the resolver, fetcher, and tests never
deal with HTTP details or raw httpx exceptions.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. YouTubeClient is an async
context manager; enter it to get a configured client, exit to close the
connection pool. Every call carries an explicit timeout; transport errors and
non-2xx statuses are wrapped into UpstreamError.

RULES:
- Always use the async context manager (async with YouTubeClient() as client:)
- No authentication: only public, cookie-less reads (plus the consent cookie)
- Timeouts come from REQUEST_TIMEOUT_S unless overridden
- 429 maps to a rate-limited UpstreamError, other failures to network errors
- A custom httpx transport can be injected for tests
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from caption_fetcher.config import (
    ACCEPT_LANGUAGE,
    REQUEST_TIMEOUT_S,
    USER_AGENT,
    YOUTUBE_BASE_URL,
)
from caption_fetcher.core.errors import UpstreamError

logger = logging.getLogger(__name__)

# Pre-accepted consent avoids the EU consent interstitial on the watch page.
_CONSENT_COOKIE = {"CONSENT": "YES+cb"}


class YouTubeClient:
    """Async client for public watch-page and caption-track reads.

    RULES:
    - Use as: async with YouTubeClient() as client: ...
    - base_url defaults to YOUTUBE_BASE_URL from config
    - timeout_s defaults to REQUEST_TIMEOUT_S from config
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or YOUTUBE_BASE_URL).rstrip("/")
        self._timeout_s = timeout_s if timeout_s is not None else REQUEST_TIMEOUT_S
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> YouTubeClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "User-Agent": USER_AGENT,
                "Accept-Language": ACCEPT_LANGUAGE,
            },
            cookies=_CONSENT_COOKIE,
            timeout=httpx.Timeout(self._timeout_s),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "YouTubeClient must be used as an async context manager: "
                "async with YouTubeClient() as client: ..."
            )
        return self._client

    async def _get(self, url: str, params: Optional[dict] = None) -> httpx.Response:
        client = self._ensure_client()
        try:
            resp = await client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamError(None, "timed out fetching {}: {}".format(url, exc))
        except httpx.HTTPError as exc:
            raise UpstreamError(None, "{} fetching {}".format(type(exc).__name__, url))

        if resp.status_code != 200:
            raise UpstreamError(resp.status_code, resp.reason_phrase or "unexpected status")
        return resp

    async def fetch_watch_page(self, video_id: str) -> str:
        """Fetch the public watch page HTML for a video.

        Args:
            video_id: A validated 11-character video ID.

        Returns:
            The page body as text.
        """
        resp = await self._get("/watch", params={"v": video_id, "hl": "en"})
        logger.debug("Fetched watch page for %s (%d bytes)", video_id, len(resp.content))
        return resp.text

    async def fetch_caption_track(self, locator: str) -> bytes:
        """Fetch the raw body of one caption track.

        Args:
            locator: Absolute timed-text URL, already carrying its format param.

        Returns:
            The response body bytes, undecoded.
        """
        resp = await self._get(locator)
        return resp.content
