"""Abstract caption decoder and the try-primary-then-fallback combinator.

WHY: The timed-text endpoint answers in more than one wire format, and which
one actually comes back is not under our control. Every format decodes into
the same CaptionSegment list, so one small interface lets the fetcher treat
them uniformly.

HOW: BaseDecoder is an ABC with a ``name`` property and a ``decode()``
method. decode_with_fallback() runs decoders in order and returns the first
non-empty result.

RULES:
- decode() raises DecodeError on a structurally malformed payload
- decode() may return [] when the payload is well-formed but carries no text
- Emitted segments are already normalized and never have empty text
- The combinator raises DecodeError only when every decoder came up empty

To add a new wire format:
1. Create a new file in decoders/
2. Subclass BaseDecoder
3. Implement decode() and name
4. Register it in DECODERS in decoders/__init__.py
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from caption_fetcher.core.errors import DecodeError
from caption_fetcher.core.ir import CaptionSegment

logger = logging.getLogger(__name__)


class BaseDecoder(ABC):
    """Abstract base for all caption wire-format decoders."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short format name, e.g. 'json3'."""

    @abstractmethod
    def decode(self, payload: bytes) -> List[CaptionSegment]:
        """Decode a raw payload into ordered caption segments.

        Args:
            payload: Response body bytes from the timed-text endpoint.

        Returns:
            Segments in upstream emission order.

        Raises:
            DecodeError: The payload is malformed for this format.
        """


def non_negative(value: float) -> float:
    return value if value > 0 else 0.0


def decode_with_fallback(
    payload: bytes,
    decoders: Sequence[BaseDecoder],
) -> List[CaptionSegment]:
    """Decode with each decoder in turn, returning the first non-empty result.

    A decoder that raises DecodeError or yields zero segments hands the same
    bytes to the next one.
    """
    failures: List[str] = []
    for decoder in decoders:
        try:
            segments = decoder.decode(payload)
        except DecodeError as exc:
            logger.debug("%s decoder rejected payload: %s", decoder.name, exc)
            failures.append("{}: {}".format(decoder.name, exc))
            continue
        if segments:
            return segments
        failures.append("{}: no segments".format(decoder.name))

    raise DecodeError("No decoder produced segments ({})".format("; ".join(failures)))
