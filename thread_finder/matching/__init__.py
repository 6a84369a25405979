"""Text normalization, similarity and candidate scoring."""

from thread_finder.matching.normalizer import extract_keywords, normalize_text
from thread_finder.matching.scorer import MatchScorer
from thread_finder.matching.similarity import compare_two_strings

__all__ = ["extract_keywords", "normalize_text", "MatchScorer", "compare_two_strings"]
