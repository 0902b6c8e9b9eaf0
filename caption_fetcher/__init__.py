"""Caption Fetcher: resilient timed-caption acquisition for public videos.

WHY: The video platform exposes captions through undocumented, session-bound
endpoints with no guaranteed language and frequent transient failures. This
package turns a video ID into a clean, timed transcript despite that.

HOW: Four-stage pipeline: resolve (caption track directory from the watch
page), select (language-priority fallback tiers), fetch/decode (json3 with
legacy timed-text fallback), assemble (stable response row). A retry envelope
wraps the primary path and a library-backed secondary path backs it up.

RULES:
- Every stage is independently testable
- The response row shape is the stable contract for callers
- Nothing here persists transcripts or caches track locators
"""

__version__ = "0.1.0"
