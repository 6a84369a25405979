"""Rate-limited fetcher for the Reddit JSON API."""

import asyncio
import contextvars
import logging
import re
from contextlib import nullcontext
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp

from thread_finder.client.auth import TokenManager
from thread_finder.client.error_handler import ResolutionErrorTracker
from thread_finder.client.rate_limiter import RateLimiter
from thread_finder.config import Config

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 25
_NAME_RE = re.compile(r"[^A-Za-z0-9_-]")


class FetchStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    INVALID_JSON = "invalid_json"


def sanitize_reddit_name(name: str) -> str:
    """
    Restrict a username or subreddit name to Reddit's identifier charset.

    Keeps ``[A-Za-z0-9_-]`` and caps the length, so OCR output can never
    inject path segments or query parameters into a request URL.
    """
    return _NAME_RE.sub("", name or "")[:MAX_NAME_LENGTH]


class RedditFetcher:
    """
    Issues paced GET requests to the Reddit JSON API.

    ``fetch`` never raises for HTTP-level failures: it returns None and
    records a FetchStatus that the caller can query through ``last_status``,
    ``was_not_found()`` and ``is_rate_limited()``. The status and the error
    tracker are held per asyncio task, so concurrent resolutions sharing one
    fetcher do not see each other's results or failures.
    """

    def __init__(
        self,
        config: Config,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limiter: Optional[RateLimiter] = None,
        token_manager: Optional[TokenManager] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the fetcher.

        Args:
            config: Application configuration
            session: HTTP session to use; one is created (and owned) if omitted
            rate_limiter: Shared rate limiter; created from config if omitted
            token_manager: OAuth token manager; created from config if omitted
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.config = config
        self.prometheus_exporter = prometheus_exporter
        self.rate_limiter = rate_limiter or RateLimiter(
            config.rate_limit,
            authenticated=config.is_authenticated,
            prometheus_exporter=prometheus_exporter,
        )
        self.token_manager = token_manager or TokenManager(config, self.rate_limiter)
        self._untracked = ResolutionErrorTracker(config.failure_threshold, prometheus_exporter)
        self._session = session
        self._owns_session = session is None
        self._status: contextvars.ContextVar = contextvars.ContextVar(
            f"fetch_status_{id(self)}", default=None
        )
        self._tracker: contextvars.ContextVar = contextvars.ContextVar(
            f"error_tracker_{id(self)}", default=None
        )

    @property
    def last_status(self) -> Optional[FetchStatus]:
        """Status of the most recent fetch in the current task."""
        return self._status.get()

    def was_not_found(self) -> bool:
        return self._status.get() is FetchStatus.NOT_FOUND

    def is_rate_limited(self) -> bool:
        """True while the shared rate-limit cooldown is active."""
        return self.rate_limiter.is_rate_limited()

    @property
    def error_tracker(self) -> ResolutionErrorTracker:
        """Tracker of the resolution running in the current task."""
        return self._tracker.get() or self._untracked

    def start_error_tracking(self) -> ResolutionErrorTracker:
        """Begin a new resolution in the current task with a clean failure count."""
        tracker = ResolutionErrorTracker(self.config.failure_threshold, self.prometheus_exporter)
        self._tracker.set(tracker)
        return tracker

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.rate_limit.request_timeout_sec)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        GET a Reddit JSON endpoint with pacing and authentication.

        Args:
            url: Absolute URL on ``config.base_url``
            params: Query parameters

        Returns:
            Decoded JSON object, or None on any failure
        """
        # No request of any kind, token exchange included, during a cooldown
        if self.rate_limiter.is_rate_limited():
            return self._finish(FetchStatus.RATE_LIMITED)

        session = self._get_session()
        token = await self.token_manager.get_token(session)
        authenticated = token is not None

        if not await self.rate_limiter.pre_request(authenticated):
            return self._finish(FetchStatus.RATE_LIMITED)

        headers = {"User-Agent": self.config.user_agent}
        if authenticated:
            headers["Authorization"] = f"bearer {token}"
            url = url.replace(self.config.base_url, self.config.oauth_base_url, 1)

        timer = self.prometheus_exporter.time_request() if self.prometheus_exporter else None
        try:
            with timer if timer else nullcontext():
                async with session.get(url, params=params, headers=headers) as response:
                    if response.status == 429:
                        self.rate_limiter.record_rate_limited(response.headers.get("Retry-After"))
                        return self._finish(FetchStatus.RATE_LIMITED)

                    if response.status == 401 and authenticated:
                        # Token revoked or expired early; next call re-exchanges
                        self.rate_limiter.state.clear_token()

                    if response.status == 404:
                        # Expected when a subreddit or user does not exist
                        logger.debug(f"Reddit returned 404: {url}")
                        self.error_tracker.record_success()
                        return self._finish(FetchStatus.NOT_FOUND)

                    if response.status >= 400:
                        logger.warning(f"Reddit API error ({response.status}): {url}")
                        self.error_tracker.record_error(str(response.status))
                        return self._finish(FetchStatus.HTTP_ERROR)

                    try:
                        payload = await response.json(content_type=None)
                    except ValueError as e:
                        logger.warning(f"Malformed JSON from {url}: {e!r}")
                        self.error_tracker.record_error("invalid_json")
                        return self._finish(FetchStatus.INVALID_JSON)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Reddit fetch error for {url}: {e!r}")
            self.error_tracker.record_error("connection")
            return self._finish(FetchStatus.NETWORK_ERROR)

        if not isinstance(payload, dict):
            logger.warning(f"Unexpected JSON payload type from {url}: {type(payload).__name__}")
            self.error_tracker.record_error("invalid_json")
            return self._finish(FetchStatus.INVALID_JSON)

        self.rate_limiter.record_success(authenticated)
        self.error_tracker.record_success()
        self._finish(FetchStatus.OK)
        return payload

    def _finish(self, status: FetchStatus) -> None:
        self._status.set(status)
        if self.prometheus_exporter:
            self.prometheus_exporter.record_request(status.value)
        return None
