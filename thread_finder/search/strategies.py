"""Search strategies: the individual ways of querying Reddit for a screenshot."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from thread_finder.client.fetcher import FetchStatus, RedditFetcher, sanitize_reddit_name
from thread_finder.config import Config
from thread_finder.matching.normalizer import extract_keywords
from thread_finder.matching.scorer import MatchScorer
from thread_finder.models.candidate import Candidate
from thread_finder.models.mapping import listing_after, listing_children, listing_to_candidates
from thread_finder.models.query import ExtractionQuery
from thread_finder.models.result import Failure, FailureKind, ResolutionResult

logger = logging.getLogger(__name__)


class SearchStrategy(ABC):
    """
    One named way of querying Reddit, paired with its field prerequisites.

    ``run`` returns a Match, a Failure, or None when the strategy has nothing
    to offer. A strategy whose request failed softly (network error, 5xx,
    malformed JSON) returns ``Failure(API_ERROR)``; the runner treats that as
    "no candidates" and moves on.
    """

    name: str = ""
    required_fields: Tuple[str, ...] = ()

    def __init__(self, fetcher: RedditFetcher, scorer: MatchScorer, config: Config):
        self.fetcher = fetcher
        self.scorer = scorer
        self.config = config

    def is_applicable(self, query: ExtractionQuery) -> bool:
        """All required fields are present (and usernames are not placeholders)."""
        return all(query.has_field(field) for field in self.required_fields)

    @abstractmethod
    async def run(self, query: ExtractionQuery) -> Optional[ResolutionResult]:
        """Execute the strategy for a query."""

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    def _soft_failure(self) -> Optional[ResolutionResult]:
        """Map the fetcher status of a failed request to a strategy outcome."""
        status = self.fetcher.last_status
        if status in (FetchStatus.NOT_FOUND, FetchStatus.RATE_LIMITED):
            return None
        return Failure(FailureKind.API_ERROR)

    async def _search_posts(
        self,
        path: str,
        params: Dict[str, Any],
        query: ExtractionQuery,
    ) -> Optional[ResolutionResult]:
        params = {"limit": self.config.search_limit, **params}
        response = await self.fetcher.fetch(self._url(path), params)
        if response is None:
            return self._soft_failure()

        candidates = listing_to_candidates(response)
        if not candidates:
            logger.info(f"[{self.name}] no results")
            return None

        logger.info(f"[{self.name}] scoring {len(candidates)} results")
        return self.scorer.best_post_match(candidates, query, strategy=self.name)


class TitleInSubredditSearch(SearchStrategy):
    """Title keywords searched within the named subreddit."""

    name = "title_in_subreddit"
    required_fields = ("subreddit", "title")

    async def run(self, query: ExtractionQuery) -> Optional[ResolutionResult]:
        subreddit = sanitize_reddit_name(query.subreddit)
        keywords = extract_keywords(query.title)
        if not subreddit or not keywords:
            return None

        logger.info(f"Searching r/{subreddit} for title keywords: {keywords!r}")
        return await self._search_posts(
            f"/r/{subreddit}/search.json",
            {"q": keywords, "restrict_sr": "on", "sort": "relevance"},
            query,
        )


class AuthorInSubredditSearch(SearchStrategy):
    """Recent posts by the author within the named subreddit."""

    name = "author_in_subreddit"
    required_fields = ("subreddit", "username")

    async def run(self, query: ExtractionQuery) -> Optional[ResolutionResult]:
        subreddit = sanitize_reddit_name(query.subreddit)
        author = sanitize_reddit_name(query.username)
        if not subreddit or not author:
            return None

        logger.info(f"Searching r/{subreddit} for posts by u/{author}")
        return await self._search_posts(
            f"/r/{subreddit}/search.json",
            {"q": f"author:{author}", "restrict_sr": "on", "sort": "new"},
            query,
        )


class ExactTitleSearch(SearchStrategy):
    """
    Site-wide phrase search for the full title.

    OCR noise (a dropped letter, a misread character) breaks phrase matching
    entirely, so when the phrase search comes back empty the title keywords
    are searched site-wide instead.
    """

    name = "exact_title"
    required_fields = ("title",)

    async def run(self, query: ExtractionQuery) -> Optional[ResolutionResult]:
        # Quotes inside the title would end the phrase early
        title = query.title.replace('"', " ").strip()
        if not title:
            return None

        logger.info(f"Searching for exact title: {title!r}")
        params = {"q": f'"{title}"', "sort": "relevance", "limit": self.config.search_limit}
        response = await self.fetcher.fetch(self._url("/search.json"), params)
        if response is None:
            return self._soft_failure()

        candidates = listing_to_candidates(response)
        if candidates:
            logger.info(f"[{self.name}] scoring {len(candidates)} results")
            return self.scorer.best_post_match(candidates, query, strategy=self.name)

        keywords = extract_keywords(query.title)
        if not keywords:
            return None
        logger.info(f"No exact title matches, trying keywords: {keywords!r}")
        return await self._search_posts("/search.json", {"q": keywords, "sort": "relevance"}, query)


class TitleAuthorSearch(SearchStrategy):
    """Site-wide search combining title keywords with the author."""

    name = "title_with_author"
    required_fields = ("title", "username")

    async def run(self, query: ExtractionQuery) -> Optional[ResolutionResult]:
        keywords = extract_keywords(query.title)
        author = sanitize_reddit_name(query.username)
        if not keywords or not author:
            return None

        logger.info(f"Searching for {keywords!r} by u/{author}")
        return await self._search_posts(
            "/search.json",
            {"q": f"{keywords} author:{author}", "sort": "relevance"},
            query,
        )


class UserCommentSearch(SearchStrategy):
    """
    Scan the author's recent comment history for the screenshot text.

    Screenshots of comments carry no post title of their own, so this is the
    only strategy that can find them. A 404 on the first page means the
    account does not exist, which is decisive for the whole resolution.
    """

    name = "user_comments"
    required_fields = ("username",)
    page_size = 100

    async def run(self, query: ExtractionQuery) -> Optional[ResolutionResult]:
        username = sanitize_reddit_name(query.username)
        if not username:
            return None

        logger.info(f"Searching comment history of u/{username}")
        url = self._url(f"/user/{username}/comments.json")
        comments: List[Candidate] = []
        after: Optional[str] = None

        for page in range(self.config.max_comment_pages):
            params = {"sort": "new", "limit": self.page_size}
            if after:
                params["after"] = after

            response = await self.fetcher.fetch(url, params)
            if response is None:
                if page > 0:
                    # Keep what we already have
                    break
                if self.fetcher.was_not_found():
                    logger.info(f"Reddit user u/{username} not found (deleted or suspended)")
                    return Failure(FailureKind.USER_NOT_FOUND)
                return self._soft_failure()

            if not listing_children(response):
                break
            comments.extend(listing_to_candidates(response))

            after = listing_after(response)
            if not after:
                break

        if not comments:
            logger.info(f"No comments found for u/{username}")
            return None

        logger.info(f"Scoring {len(comments)} comments from u/{username}")
        return self.scorer.best_comment_match(comments, query, strategy=self.name)


class BodySnippetSearch(SearchStrategy):
    """Site-wide search on keywords from the body snippet."""

    name = "body_snippet"
    required_fields = ("body_snippet",)

    async def run(self, query: ExtractionQuery) -> Optional[ResolutionResult]:
        keywords = extract_keywords(query.body_snippet)
        if not keywords:
            return None

        logger.info(f"Searching by body snippet keywords: {keywords!r}")
        return await self._search_posts("/search.json", {"q": keywords, "sort": "relevance"}, query)


def build_default_strategies(fetcher: RedditFetcher, scorer: MatchScorer, config: Config) -> List[SearchStrategy]:
    """
    Build the ordered strategy list.

    Order matters: the runner stops at the first confident match.
    """
    strategy_types = [
        TitleInSubredditSearch,
        AuthorInSubredditSearch,
        ExactTitleSearch,
        TitleAuthorSearch,
        UserCommentSearch,
    ]
    if config.enable_body_search:
        strategy_types.append(BodySnippetSearch)
    return [strategy_type(fetcher, scorer, config) for strategy_type in strategy_types]
