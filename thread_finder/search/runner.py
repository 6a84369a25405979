"""Driver loop that runs search strategies in order and picks the result."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from thread_finder.client.fetcher import RedditFetcher
from thread_finder.config import ScoringConfig
from thread_finder.models.query import ExtractionQuery
from thread_finder.models.result import Failure, FailureKind, Match, NoMatch, ResolutionResult
from thread_finder.search.strategies import SearchStrategy

logger = logging.getLogger(__name__)


class RunnerState(str, Enum):
    """
    How a run left the strategy loop.

    A run is idle before ``run`` is called and running inside the loop; every
    run then passes through exactly one of these states before the final
    decision produces its result.
    """

    SHORT_CIRCUITED = "short_circuited"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RunOutcome:
    """Result of one run together with how it ended."""

    result: ResolutionResult
    exit_state: RunnerState
    attempted: int = 0
    errored: int = 0


class StrategyRunner:
    """
    Runs strategies strictly in sequence for one query.

    - ``Failure(USER_NOT_FOUND)`` ends the run immediately.
    - A match at or above the short-circuit confidence ends the run.
    - Weaker matches are kept if strictly better than the best so far.
    - An active rate-limit cooldown, too many consecutive request failures
      within this run, or cancellation stop the loop at the next strategy
      boundary.

    The final result is the best match at or above the minimum confidence,
    otherwise a Failure describing why the search was incomplete, otherwise
    NoMatch. The runner keeps no per-run state, so one instance can serve
    concurrent resolutions.
    """

    def __init__(
        self,
        strategies: List[SearchStrategy],
        fetcher: RedditFetcher,
        scoring: Optional[ScoringConfig] = None,
        prometheus_exporter=None,
    ):
        self.strategies = strategies
        self.fetcher = fetcher
        self.scoring = scoring or ScoringConfig()
        self.prometheus_exporter = prometheus_exporter

    async def run(
        self,
        query: ExtractionQuery,
        deadline: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RunOutcome:
        """
        Resolve a query.

        Args:
            query: Extraction query
            deadline: Event-loop time (``loop.time()``) after which no further
                strategy is started
            cancel_event: Event that, once set, stops the run at the next
                strategy boundary

        Returns:
            RunOutcome whose result is a Match, NoMatch or Failure; never
            raises for expected failures
        """
        tracker = self.fetcher.start_error_tracking()
        best: Optional[Match] = None
        attempted = 0
        errored = 0

        def outcome(result: ResolutionResult, exit_state: RunnerState) -> RunOutcome:
            return self._finish(RunOutcome(result, exit_state, attempted, errored))

        for strategy in self.strategies:
            if self._cancelled(deadline, cancel_event):
                logger.info(f"Resolution cancelled before strategy {strategy.name!r}")
                return outcome(self._best_or(best, FailureKind.CANCELLED), RunnerState.EXHAUSTED)

            if self.fetcher.is_rate_limited():
                logger.warning(f"Rate limited, skipping remaining strategies from {strategy.name!r}")
                return outcome(self._best_or(best, FailureKind.RATE_LIMITED), RunnerState.EXHAUSTED)

            if tracker.should_abort():
                logger.warning(
                    f"Too many consecutive request failures ({tracker.summary()}), "
                    f"skipping remaining strategies from {strategy.name!r}"
                )
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_aborted_resolution()
                # An incomplete search must not read as "nothing matched"
                return outcome(self._best_or(best, FailureKind.API_ERROR), RunnerState.EXHAUSTED)

            if not strategy.is_applicable(query):
                logger.debug(f"Skipping strategy {strategy.name!r}: missing {strategy.required_fields}")
                continue

            attempted += 1
            result = await strategy.run(query)

            if isinstance(result, Failure):
                if result.kind is FailureKind.USER_NOT_FOUND:
                    return outcome(result, RunnerState.SHORT_CIRCUITED)
                errored += 1
                continue

            if isinstance(result, Match):
                if result.match_confidence >= self.scoring.short_circuit_confidence:
                    logger.info(f"Strategy {strategy.name!r} found high-confidence match")
                    return outcome(result, RunnerState.SHORT_CIRCUITED)
                if best is None or result.match_confidence > best.match_confidence:
                    best = result

        if self.fetcher.is_rate_limited():
            return outcome(self._best_or(best, FailureKind.RATE_LIMITED), RunnerState.EXHAUSTED)

        if best is not None and best.match_confidence >= self.scoring.min_confidence:
            logger.info(f"Returning best match with confidence: {best.match_confidence:.3f}")
            return outcome(best, RunnerState.EXHAUSTED)

        if attempted and errored == attempted:
            logger.warning(f"Every strategy failed ({tracker.summary()})")
            return outcome(Failure(FailureKind.API_ERROR), RunnerState.EXHAUSTED)
        return outcome(NoMatch(), RunnerState.EXHAUSTED)

    def _best_or(self, best: Optional[Match], kind: FailureKind) -> ResolutionResult:
        if best is not None and best.match_confidence >= self.scoring.min_confidence:
            return best
        return Failure(kind)

    @staticmethod
    def _cancelled(deadline: Optional[float], cancel_event: Optional[asyncio.Event]) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and asyncio.get_running_loop().time() >= deadline

    def _finish(self, outcome: RunOutcome) -> RunOutcome:
        result = outcome.result
        if self.prometheus_exporter:
            self.prometheus_exporter.record_resolution(result.outcome)
            if isinstance(result, Match) and result.strategy:
                self.prometheus_exporter.record_strategy_match(result.strategy)
        return outcome
