"""Public entry point: resolve an extraction query to a Reddit URL."""

import asyncio
import logging
from typing import List, Optional

import aiohttp

from thread_finder.client.fetcher import RedditFetcher
from thread_finder.client.rate_limiter import RateLimiter, RateLimitState
from thread_finder.config import Config
from thread_finder.matching.scorer import MatchScorer
from thread_finder.models.query import ExtractionQuery
from thread_finder.models.result import NoMatch, ResolutionResult
from thread_finder.search.runner import StrategyRunner
from thread_finder.search.strategies import SearchStrategy, build_default_strategies

logger = logging.getLogger(__name__)


class ThreadResolver:
    """
    Finds the Reddit post or comment a screenshot was taken from.

    One instance owns one RateLimitState; concurrent ``resolve`` calls on the
    same instance share its pacing. Use as an async context manager, or call
    ``close()`` when done, to release the HTTP session.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        session: Optional[aiohttp.ClientSession] = None,
        state: Optional[RateLimitState] = None,
        strategies: Optional[List[SearchStrategy]] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the resolver.

        Args:
            config: Application configuration (defaults: unauthenticated)
            session: HTTP session to use instead of an owned one
            state: Rate-limit state to share or inspect
            strategies: Custom ordered strategy list
            prometheus_exporter: Optional Prometheus exporter for metrics

        Raises:
            ValueError: If the configuration is invalid
        """
        self.config = config or Config()
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

        self.rate_limiter = RateLimiter(
            self.config.rate_limit,
            authenticated=self.config.is_authenticated,
            state=state,
            prometheus_exporter=prometheus_exporter,
        )
        self.fetcher = RedditFetcher(
            self.config,
            session=session,
            rate_limiter=self.rate_limiter,
            prometheus_exporter=prometheus_exporter,
        )
        self.scorer = MatchScorer(self.config.scoring)
        if strategies is None:
            strategies = build_default_strategies(self.fetcher, self.scorer, self.config)
        self.runner = StrategyRunner(strategies, self.fetcher, self.config.scoring, prometheus_exporter)

        mode = "OAuth" if self.config.is_authenticated else "unauthenticated"
        logger.info(f"Thread resolver ready ({mode}, {len(strategies)} strategies)")

    @property
    def state(self) -> RateLimitState:
        return self.rate_limiter.state

    async def resolve(
        self,
        query: ExtractionQuery,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ResolutionResult:
        """
        Resolve a query to a Match, NoMatch or Failure.

        Args:
            query: Fields extracted from the screenshot
            timeout: Seconds after which no further strategy is started;
                a request already in flight is allowed to finish
            cancel_event: Event that abandons the resolution at the next
                strategy boundary once set

        Returns:
            The resolution result; expected failures never raise
        """
        if not query.is_searchable():
            logger.info("Query has no title, username or subreddit, nothing to search")
            return NoMatch()

        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout

        logger.info(
            f"Resolving r/{query.subreddit} u/{query.username} title={query.title!r} "
            f"(extraction confidence: {query.confidence.value})"
        )
        outcome = await self.runner.run(query, deadline=deadline, cancel_event=cancel_event)
        logger.info(
            f"Resolution finished: {outcome.result.outcome} ({outcome.exit_state.value}, "
            f"{outcome.attempted} strategies run, {outcome.errored} failed)"
        )
        return outcome.result

    async def close(self) -> None:
        await self.fetcher.close()

    async def __aenter__(self) -> "ThreadResolver":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
