"""Upstream client package: async HTTP reads against the video platform.

WHY: Both the directory resolver and the track fetcher read from the same
upstream host with the same headers, timeouts, and error wrapping.

HOW: Uses httpx.AsyncClient behind the YouTubeClient async context manager.

RULES:
- All upstream HTTP for the primary path goes through YouTubeClient
- The secondary backend uses its own library and never touches this client
"""

from caption_fetcher.api.client import YouTubeClient

__all__ = ["YouTubeClient"]
