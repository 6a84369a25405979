"""Keyword extraction and text normalization for noisy OCR text."""

import re

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "it", "this", "that", "was", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "must", "shall", "can",
    "i", "me", "my", "we", "our", "you", "your", "he", "him", "his",
    "she", "her", "they", "them", "their", "what", "which", "who", "whom",
})

MAX_KEYWORDS = 6
MIN_KEYWORD_LENGTH = 3

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def extract_keywords(text: str) -> str:
    """
    Reduce free text to at most six significant lowercase words.

    Punctuation is stripped, words of two characters or fewer and stop words
    are dropped, and the first six remaining words are joined by single
    spaces in their original order. Returns an empty string when nothing
    significant remains.

    Args:
        text: Raw title, body snippet or comment text

    Returns:
        Space separated keywords, possibly empty
    """
    if not text:
        return ""
    words = _PUNCTUATION_RE.sub("", text.lower()).split()
    keywords = [w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOP_WORDS]
    return " ".join(keywords[:MAX_KEYWORDS])


def normalize_text(text: str) -> str:
    """Lowercase and collapse runs of whitespace (including OCR line breaks)."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()
