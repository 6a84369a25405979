"""Prometheus metrics for monitoring the Reddit thread finder."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

# Define metrics
REQUESTS = Counter(
    "thread_finder_requests_total",
    "Reddit API requests by outcome status",
    ["status"],
)

API_ERRORS = Counter(
    "thread_finder_api_errors_total",
    "Number of API errors encountered",
    ["error_type"],
)

RESOLUTIONS = Counter(
    "thread_finder_resolutions_total",
    "Completed resolutions by outcome",
    ["outcome"],
)

STRATEGY_MATCHES = Counter(
    "thread_finder_strategy_matches_total",
    "Matches produced, by search strategy",
    ["strategy"],
)

ABORTED_RESOLUTIONS = Counter(
    "thread_finder_aborted_resolutions_total",
    "Resolutions stopped early after consecutive request failures",
)

CURRENT_DELAY = Gauge(
    "thread_finder_request_delay_seconds",
    "Current pacing delay between Reddit requests",
)

REQUEST_DURATION = Histogram(
    "thread_finder_request_duration_seconds",
    "Duration of API requests in seconds",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the Reddit thread finder."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_request(self, status: str) -> None:
        REQUESTS.labels(status=status).inc()

    def record_api_error(self, error_type: str) -> None:
        """
        Record an API error.

        Args:
            error_type: Type of API error (e.g., '500', 'connection', 'invalid_json')
        """
        API_ERRORS.labels(error_type=error_type).inc()

    def record_resolution(self, outcome: str) -> None:
        RESOLUTIONS.labels(outcome=outcome).inc()

    def record_strategy_match(self, strategy: str) -> None:
        STRATEGY_MATCHES.labels(strategy=strategy).inc()

    def record_aborted_resolution(self) -> None:
        ABORTED_RESOLUTIONS.inc()

    def set_current_delay(self, delay_seconds: float) -> None:
        CURRENT_DELAY.set(delay_seconds)

    def time_request(self) -> "RequestTimer":
        """
        Create a context manager for timing API requests.

        Returns:
            RequestTimer context manager
        """
        return RequestTimer()


class RequestTimer:
    """Context manager for timing API requests."""

    def __init__(self):
        self.start_time: Optional[float] = None

    def __enter__(self) -> "RequestTimer":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            REQUEST_DURATION.observe(time.time() - self.start_time)
