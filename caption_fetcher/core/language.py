"""Heuristic language detection for transcripts with no declared language.

WHY: The winning track or backend usually declares its language code, but
not always. The response row still wants a best-effort language.

HOW: Samples the first 500 characters. Checks script ranges first
(Devanagari, Arabic, kana, CJK, Hangul, Cyrillic), then accented letters,
then common function words. Defaults to English.

RULES:
- Text shorter than 10 characters returns ""
- Only used when no declared language code is available
"""

from __future__ import annotations

import re

_SAMPLE_CHARS = 500

# Ordered: first match wins. Kana before CJK: Japanese text mixes in kanji.
_PATTERNS = (
    (re.compile(r"[ऀ-ॿ]"), "hi"),
    (re.compile(r"[؀-ۿ]"), "ar"),
    (re.compile(r"[぀-ゟ゠-ヿ]"), "ja"),
    (re.compile(r"[一-鿿]"), "zh"),
    (re.compile(r"[가-힯]"), "ko"),
    (re.compile(r"[Ѐ-ӿ]"), "ru"),
    (re.compile(r"[ñ¿¡]"), "es"),
    (re.compile(r"[ãõ]"), "pt"),
    (re.compile(r"[àâæçèêëîïôùûœ]"), "fr"),
    (re.compile(r"[äöüß]"), "de"),
    (re.compile(r"\b(el|los|las|que|por|con|una|pero)\b"), "es"),
    (re.compile(r"\b(le|les|des|une|est|avec|pour|dans)\b"), "fr"),
    (re.compile(r"\b(der|die|das|und|ist|nicht|mit|auf)\b"), "de"),
)


def detect_language(text: str) -> str:
    """Guess an ISO 639-1 code for text, "" when there is too little to go on."""
    if not text or len(text) < 10:
        return ""
    sample = text[:_SAMPLE_CHARS].lower()
    for pattern, code in _PATTERNS:
        if pattern.search(sample):
            return code
    return "en"
