"""Confidence scoring of candidate posts and comments against a query."""

import logging
from typing import Iterable, Optional

from thread_finder.config import ScoringConfig
from thread_finder.matching.normalizer import extract_keywords, normalize_text
from thread_finder.matching.similarity import compare_two_strings
from thread_finder.models.candidate import Candidate
from thread_finder.models.query import ExtractionQuery
from thread_finder.models.result import Match

logger = logging.getLogger(__name__)

REDDIT_URL = "https://www.reddit.com"

# Character windows used when comparing bodies
POST_BODY_WINDOW = 200
COMMENT_KEYWORD_WINDOW = 300
DIRECT_COMPARE_WINDOW = 150
PREFIX_MAX = 50
PREFIX_SLACK = 5
PREFIX_MIN = 10
MID_START, MID_END = 10, 50
MID_MIN = 15


class MatchScorer:
    """
    Scores candidates against an extraction query.

    Post candidates are scored on weighted title, author and subreddit
    similarity plus a body bonus. Comment candidates found through a user's
    history are scored on how closely the comment text matches the
    screenshot text.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def score_post(self, candidate: Candidate, query: ExtractionQuery) -> float:
        """
        Score a post candidate.

        Args:
            candidate: Post returned by a search
            query: Extraction query

        Returns:
            Confidence in [0, 1]
        """
        cfg = self.config
        score = 0.0

        if query.title and candidate.title:
            title_similarity = compare_two_strings(query.title.lower(), candidate.title.lower())
            score += title_similarity * cfg.title_weight
            if title_similarity > cfg.exact_title_similarity:
                score += cfg.exact_title_bonus

        # Placeholder usernames must not drag down otherwise good matches
        if query.has_real_username() and candidate.author:
            author_similarity = compare_two_strings(query.username.lower(), candidate.author.lower())
            score += author_similarity * cfg.author_weight

        if query.subreddit and candidate.subreddit:
            subreddit_similarity = compare_two_strings(query.subreddit.lower(), candidate.subreddit.lower())
            score += subreddit_similarity * cfg.subreddit_weight

        if query.body_snippet and candidate.body_text:
            query_words = extract_keywords(query.body_snippet)
            candidate_words = extract_keywords(candidate.body_text[:POST_BODY_WINDOW])
            if query_words and candidate_words:
                if compare_two_strings(query_words, candidate_words) > cfg.body_similarity:
                    score += cfg.body_bonus

        return min(score, 1.0)

    def score_comment(self, candidate: Candidate, query: ExtractionQuery) -> float:
        """
        Raw text score of a comment candidate, before the user-match boost.

        The score is the best of keyword similarity, direct similarity of the
        leading characters, and a containment bonus when a phrase of the
        screenshot text appears verbatim in the comment.
        """
        search_keywords = extract_keywords(f"{query.title or ''} {query.body_snippet or ''}")
        comment_keywords = extract_keywords((candidate.body_text or "")[:COMMENT_KEYWORD_WINDOW])
        if not search_keywords or not comment_keywords:
            return 0.0

        snippet = self._snippet(query)
        comment_body = normalize_text(candidate.body_text or "")

        text_similarity = compare_two_strings(search_keywords, comment_keywords)
        direct_similarity = compare_two_strings(
            snippet[:DIRECT_COMPARE_WINDOW], comment_body[:DIRECT_COMPARE_WINDOW]
        )
        contains_bonus = self.config.comment_contains_bonus if self._contains_snippet(snippet, comment_body) else 0.0

        return min(max(text_similarity, direct_similarity, contains_bonus), 1.0)

    def comment_confidence(self, raw_score: float) -> float:
        """The comment search is already filtered to one author, so boost."""
        return min(raw_score + self.config.comment_user_boost, 1.0)

    def comment_threshold(self, query: ExtractionQuery) -> float:
        """Short snippets are more likely partial, so they get a lower bar."""
        if len(self._snippet(query)) < self.config.short_snippet_length:
            return self.config.short_snippet_threshold
        return self.config.comment_threshold

    def best_post_match(
        self,
        candidates: Iterable[Candidate],
        query: ExtractionQuery,
        strategy: Optional[str] = None,
    ) -> Optional[Match]:
        """
        Return the highest scoring post as a Match, or None.

        Ties keep the earliest candidate in API order. Candidates scoring
        zero never match.
        """
        best: Optional[Candidate] = None
        best_score = 0.0

        for candidate in candidates:
            score = self.score_post(candidate, query)
            if score > best_score:
                best, best_score = candidate, score
                logger.debug(f"  New best: {candidate.title!r} in r/{candidate.subreddit} (score: {score:.3f})")

        if best is None:
            return None

        match = Match(
            url=f"{REDDIT_URL}{best.permalink}",
            title=best.title,
            author=best.author,
            subreddit=best.subreddit,
            match_confidence=best_score,
            is_comment=False,
            strategy=strategy,
        )
        logger.info(f"Best match: {match.url} (confidence: {best_score:.3f})")
        return match

    def best_comment_match(
        self,
        candidates: Iterable[Candidate],
        query: ExtractionQuery,
        strategy: Optional[str] = None,
    ) -> Optional[Match]:
        """
        Return the best comment above the snippet threshold as a Match, or None.
        """
        threshold = self.comment_threshold(query)
        best: Optional[Candidate] = None
        best_score = 0.0
        debug_best = 0.0

        for candidate in candidates:
            if not candidate.is_comment:
                continue
            score = self.score_comment(candidate, query)
            debug_best = max(debug_best, score)
            if score > best_score and score > threshold:
                best, best_score = candidate, score
                logger.debug(f"  Matching comment (score: {score:.3f}): {(candidate.body_text or '')[:60]!r}")

        if best is None:
            if debug_best > 0:
                logger.info(f"Best comment score was {debug_best:.3f} (below {threshold} threshold)")
            return None

        return Match(
            url=f"{REDDIT_URL}{best.permalink}?context=3",
            title=f"Comment on: {best.title}",
            author=best.author,
            subreddit=best.subreddit,
            match_confidence=self.comment_confidence(best_score),
            is_comment=True,
            strategy=strategy,
        )

    @staticmethod
    def _snippet(query: ExtractionQuery) -> str:
        return normalize_text(query.body_snippet or query.title or "")

    @staticmethod
    def _contains_snippet(snippet: str, comment_body: str) -> bool:
        check_len = min(PREFIX_MAX, len(snippet) - PREFIX_SLACK)
        if check_len > PREFIX_MIN and snippet[:check_len] in comment_body:
            return True

        # Leading words are often filler ("yeah", "true"), try the middle
        if len(snippet) > 30:
            middle = snippet[MID_START:MID_END].strip()
            if len(middle) > MID_MIN and middle in comment_body:
                return True
        return False
