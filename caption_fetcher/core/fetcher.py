"""Track fetcher: retrieve one caption track and decode it.

WHY: A track locator points at the timed-text endpoint, which can answer in
the modern json3 format or the legacy markup. We always ask for json3 but
must still cope with whatever comes back.

HOW: Rewrites the locator's query to carry ``fmt=json3``, fetches the bytes
through YouTubeClient, and runs them through decode_with_fallback with the
default decoder order (json3, then timedtext).

RULES:
- The locator is used once and never stored
- An existing ``fmt`` parameter is replaced, other parameters are kept
- Raises UpstreamError on transport failure, DecodeError when no decoder
  produced segments
"""

from __future__ import annotations

from typing import List, Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from caption_fetcher.api.client import YouTubeClient
from caption_fetcher.core.ir import CaptionSegment, CaptionTrack
from caption_fetcher.decoders import decode_with_fallback, default_decoders
from caption_fetcher.decoders.base import BaseDecoder

MODERN_FORMAT = "json3"


def with_format(locator: str, fmt: str = MODERN_FORMAT) -> str:
    """Return locator with its ``fmt`` query parameter set to fmt."""
    parsed = urlparse(locator)
    query = [(key, value) for key, value in parse_qsl(parsed.query, keep_blank_values=True) if key != "fmt"]
    query.append(("fmt", fmt))
    return urlunparse(parsed._replace(query=urlencode(query)))


async def fetch_track(
    client: YouTubeClient,
    track: CaptionTrack,
    decoders: Optional[Sequence[BaseDecoder]] = None,
) -> List[CaptionSegment]:
    """Fetch and decode a single caption track."""
    payload = await client.fetch_caption_track(with_format(track.locator))
    return decode_with_fallback(payload, decoders or default_decoders())
