"""Per-resolution tracking of failed Reddit API requests."""

import logging
from collections import Counter

logger = logging.getLogger(__name__)


class ResolutionErrorTracker:
    """
    Request failures seen during a single resolution.

    The runner starts a fresh tracker for every run, so an outage that cut
    one resolution short never carries over into the next one.
    """

    def __init__(self, threshold: int, prometheus_exporter=None):
        """
        Initialize the error tracker.

        Args:
            threshold: Consecutive failures after which the run stops starting strategies
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.threshold = threshold
        self.consecutive_errors = 0
        self.errors_by_type: Counter = Counter()
        self.prometheus_exporter = prometheus_exporter

    @property
    def total_errors(self) -> int:
        return sum(self.errors_by_type.values())

    def record_error(self, error_type: str = "http") -> None:
        self.consecutive_errors += 1
        self.errors_by_type[error_type] += 1
        logger.debug(f"Consecutive request failures in this resolution: {self.consecutive_errors}/{self.threshold}")

        if self.prometheus_exporter:
            self.prometheus_exporter.record_api_error(error_type)

    def record_success(self) -> None:
        """A usable response (including an expected 404) breaks the streak."""
        self.consecutive_errors = 0

    def should_abort(self) -> bool:
        return self.consecutive_errors >= self.threshold

    def summary(self) -> str:
        """Failure counts by type, e.g. ``"503=2, connection=1"``."""
        if not self.errors_by_type:
            return "no request failures"
        return ", ".join(f"{error_type}={count}" for error_type, count in self.errors_by_type.most_common())
