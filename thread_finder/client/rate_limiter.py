"""Request pacing and adaptive backoff for Reddit API requests."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from thread_finder.config import RateLimitConfig

logger = logging.getLogger(__name__)


@dataclass
class RateLimitState:
    """
    Mutable pacing state shared by every request of one resolver instance.

    Times are ``time.time()`` seconds. Never persisted; a restart costs at
    most one extra cold-start delay.
    """

    current_delay: float
    last_request_time: float = 0.0
    rate_limited_until: Optional[float] = None
    access_token: Optional[str] = None
    token_expires_at: Optional[float] = None

    def clear_token(self) -> None:
        self.access_token = None
        self.token_expires_at = None


class RateLimiter:
    """
    Single-flight pacing for Reddit API requests.

    Each request waits until ``current_delay`` seconds have passed since the
    previous one. A 429 doubles the delay and starts a cooldown during which
    no request is sent at all; successes decay the delay back toward the
    base floor.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        authenticated: bool = False,
        state: Optional[RateLimitState] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the rate limiter.

        Args:
            config: Rate limiting configuration
            authenticated: Whether OAuth credentials are configured (shorter floor)
            state: Existing state to share or inspect; a fresh one by default
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.config = config
        self.state = state or RateLimitState(current_delay=self.base_delay(authenticated))
        self.prometheus_exporter = prometheus_exporter
        self._lock = asyncio.Lock()

    def base_delay(self, authenticated: bool) -> float:
        """Pacing floor in seconds for the given authentication mode."""
        if authenticated:
            return self.config.authenticated_delay_sec
        return self.config.unauthenticated_delay_sec

    def is_rate_limited(self) -> bool:
        """True while a 429 cooldown is active."""
        until = self.state.rate_limited_until
        return until is not None and time.time() < until

    def cooldown_remaining(self) -> float:
        if not self.is_rate_limited():
            return 0.0
        return self.state.rate_limited_until - time.time()

    async def pre_request(self, authenticated: bool = False) -> bool:
        """
        Wait for the pacing delay before a request.

        The wait and the update of ``last_request_time`` happen under one
        lock so concurrent resolutions cannot burst past the delay.

        Args:
            authenticated: Whether the request will carry a bearer token

        Returns:
            False if a rate-limit cooldown is active and the request must
            not be sent, True otherwise
        """
        async with self._lock:
            if self.is_rate_limited():
                logger.debug(f"Rate limit cooldown active for {self.cooldown_remaining():.1f}s, skipping request")
                return False

            delay = max(self.state.current_delay, self.base_delay(authenticated))
            elapsed = time.time() - self.state.last_request_time
            if elapsed < delay:
                await asyncio.sleep(delay - elapsed)

            # Another caller may have hit a 429 while we slept
            if self.is_rate_limited():
                return False

            self.state.last_request_time = time.time()
            return True

    def record_success(self, authenticated: bool = False) -> None:
        """Decay the delay multiplicatively back toward the base floor."""
        floor = self.base_delay(authenticated)
        self.state.current_delay = max(floor, self.state.current_delay * self.config.decay_factor)
        if self.prometheus_exporter:
            self.prometheus_exporter.set_current_delay(self.state.current_delay)

    def record_rate_limited(self, retry_after: Optional[str] = None) -> None:
        """
        Handle a 429 Too Many Requests response.

        Args:
            retry_after: Value of the Retry-After header, if available
        """
        cooldown = self.config.cooldown_sec
        if retry_after:
            try:
                cooldown = max(cooldown, float(retry_after))
            except (ValueError, TypeError):
                logger.warning(f"Failed to parse Retry-After header: {retry_after!r}")

        self.state.current_delay = min(
            self.state.current_delay * self.config.backoff_factor,
            self.config.max_delay_sec,
        )
        self.state.rate_limited_until = time.time() + cooldown

        logger.warning(
            f"Rate limited (429). Pausing requests for {cooldown:.0f}s, "
            f"request delay now {self.state.current_delay:.1f}s"
        )
        if self.prometheus_exporter:
            self.prometheus_exporter.set_current_delay(self.state.current_delay)
