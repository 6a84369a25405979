"""HTTP access to the Reddit API: pacing, authentication and error tracking."""

from thread_finder.client.auth import TokenManager
from thread_finder.client.error_handler import ResolutionErrorTracker
from thread_finder.client.fetcher import FetchStatus, RedditFetcher, sanitize_reddit_name
from thread_finder.client.rate_limiter import RateLimiter, RateLimitState

__all__ = [
    "TokenManager",
    "ResolutionErrorTracker",
    "FetchStatus",
    "RedditFetcher",
    "sanitize_reddit_name",
    "RateLimiter",
    "RateLimitState",
]
