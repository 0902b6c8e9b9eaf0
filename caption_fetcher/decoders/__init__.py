"""Caption decoder registry.

WHY: The fetcher needs one ordered list of decoders to try against a
payload, and tests need to pick a single format by name.

HOW: DECODERS maps format keys to decoder *classes*. DEFAULT_DECODER_ORDER
is the preference order used by the track fetcher: the requested modern
format first, the legacy markup second.

RULES:
- Keys are the upstream ``fmt`` names where one exists
- Values are BaseDecoder subclasses (not instances)
- json3 is always tried before timedtext
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from caption_fetcher.decoders.base import decode_with_fallback
from caption_fetcher.decoders.json3 import Json3Decoder
from caption_fetcher.decoders.timedtext import TimedTextDecoder

if TYPE_CHECKING:
    from caption_fetcher.decoders.base import BaseDecoder

DECODERS: dict[str, type[BaseDecoder]] = {
    "json3": Json3Decoder,
    "timedtext": TimedTextDecoder,
}

DEFAULT_DECODER_ORDER = ("json3", "timedtext")


def default_decoders() -> List[BaseDecoder]:
    return [DECODERS[key]() for key in DEFAULT_DECODER_ORDER]


__all__ = ["DECODERS", "DEFAULT_DECODER_ORDER", "decode_with_fallback", "default_decoders"]
