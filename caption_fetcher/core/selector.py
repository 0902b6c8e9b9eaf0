"""Fallback strategy selector: language-priority tiers over caption tracks.

WHY: A video may carry any mix of manual and auto-generated tracks in any
languages. Callers want their own language when possible, then a widely
spoken one, preferring human-authored captions at every step, and any
transcript at all rather than none.

HOW: The search order is data, not branches. build_strategy_table() turns a
preferred language and a priority table into an ordered list of Tier
entries (language predicate + kind). select_transcript() walks that table
with a single loop: each tier picks the first untried track it accepts and
fetches it; the first tier that yields non-empty text wins.

Tier order:
  1. preferred language, manual      2. preferred language, auto
  3. each priority language, manual  4. each priority language, auto
  5. any remaining manual            6. any remaining auto
  7. the first track in the original list (last resort)

RULES:
- Language match is a case-insensitive prefix match ("en" ↔ "en-US")
- A tier whose track fetch/decode fails is logged and skipped
- A track already attempted by an earlier tier is never fetched again
- Tracks are tried strictly sequentially; the first success short-circuits
- All tiers failing raises StrategiesExhausted (a network-class reason if
  every attempted tier failed on the network, else EXHAUSTED)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Set

from caption_fetcher.config import LANGUAGE_PRIORITY
from caption_fetcher.core.errors import (
    DecodeError,
    FailureReason,
    StrategiesExhausted,
    most_specific,
    reason_of,
)
from caption_fetcher.core.ir import (
    KIND_AUTO,
    KIND_MANUAL,
    AcquisitionResult,
    CaptionSegment,
    CaptionTrack,
)

logger = logging.getLogger(__name__)

TrackFetch = Callable[[CaptionTrack], Awaitable[List[CaptionSegment]]]


@dataclass(frozen=True)
class Tier:
    """One ranked candidate in the fallback search.

    RULES:
    - language None means "any language"
    - kind None means "any kind"
    - first_only restricts the tier to the first track of the original list
    """

    tag: str
    language: Optional[str] = None
    kind: Optional[str] = None
    first_only: bool = False

    def accepts(self, track: CaptionTrack) -> bool:
        if self.kind is not None and track.kind != self.kind:
            return False
        if self.language is not None and not track.matches_language(self.language):
            return False
        return True

    def pick(self, tracks: Sequence[CaptionTrack], tried: Set[int]) -> Optional[int]:
        """Return the index of the first untried track this tier accepts."""
        if self.first_only:
            return 0 if tracks and 0 not in tried else None
        for index, track in enumerate(tracks):
            if index not in tried and self.accepts(track):
                return index
        return None


def build_strategy_table(
    preferred_language: Optional[str] = None,
    priority: Sequence[str] = LANGUAGE_PRIORITY,
) -> List[Tier]:
    """Build the ordered tier list for one acquisition."""
    tiers: List[Tier] = []

    if preferred_language:
        tiers.append(Tier("manual-preferred-language", preferred_language, KIND_MANUAL))
        tiers.append(Tier("auto-preferred-language", preferred_language, KIND_AUTO))

    for kind in (KIND_MANUAL, KIND_AUTO):
        for language in priority:
            tiers.append(Tier("{}-priority-{}".format(kind, language), language, kind))

    tiers.append(Tier("manual-any", kind=KIND_MANUAL))
    tiers.append(Tier("auto-any", kind=KIND_AUTO))
    tiers.append(Tier("last-resort", first_only=True))
    return tiers


def plan_attempts(tracks: Sequence[CaptionTrack], tiers: Sequence[Tier]) -> List[tuple]:
    """Return the (tier tag, track) pairs the selector would try, in order,
    assuming every attempt fails.
    """
    tried: Set[int] = set()
    plan = []
    for tier in tiers:
        index = tier.pick(tracks, tried)
        if index is None:
            continue
        tried.add(index)
        plan.append((tier.tag, tracks[index]))
    return plan


async def select_transcript(
    tracks: Sequence[CaptionTrack],
    fetch: TrackFetch,
    preferred_language: Optional[str] = None,
    priority: Sequence[str] = LANGUAGE_PRIORITY,
) -> AcquisitionResult:
    """Walk the strategy table until one tier yields non-empty segments.

    Args:
        tracks: Caption tracks in upstream declaration order.
        fetch: Coroutine function that fetches and decodes one track.
        preferred_language: Optional caller language hint.
        priority: Ordered language priority table.

    Returns:
        AcquisitionResult tagged with the winning tier.

    Raises:
        StrategiesExhausted: No tier produced text.
    """
    tried: Set[int] = set()
    failure_reasons: List[FailureReason] = []

    for tier in build_strategy_table(preferred_language, priority):
        index = tier.pick(tracks, tried)
        if index is None:
            continue
        tried.add(index)
        track = tracks[index]

        try:
            segments = await fetch(track)
        except DecodeError as exc:
            logger.info("Tier %s (%s/%s) did not decode: %s", tier.tag, track.language_code, track.kind, exc)
            failure_reasons.append(FailureReason.DECODE)
            continue
        except Exception as exc:
            logger.warning("Tier %s (%s/%s) failed: %s", tier.tag, track.language_code, track.kind, exc)
            failure_reasons.append(reason_of(exc))
            continue

        result = AcquisitionResult(
            segments=list(segments),
            language_code=track.language_code,
            method=tier.tag,
        )
        if result.has_text():
            logger.info("Tier %s selected %s/%s (%d segments)", tier.tag, track.language_code, track.kind, len(segments))
            return result

        logger.info("Tier %s (%s/%s) yielded no text", tier.tag, track.language_code, track.kind)
        failure_reasons.append(FailureReason.DECODE)

    if failure_reasons and all(
        r in (FailureReason.NETWORK, FailureReason.RATE_LIMITED) for r in failure_reasons
    ):
        raise StrategiesExhausted(
            most_specific(*failure_reasons),
            "All {} tier attempt(s) failed on the network".format(len(failure_reasons)),
        )
    raise StrategiesExhausted(
        FailureReason.EXHAUSTED,
        "All strategies exhausted after {} tier attempt(s)".format(len(failure_reasons)),
    )
