"""Test doubles: a fake aiohttp session, listing builders and runner stubs."""

from typing import Any, Callable, Dict, List, Optional

from thread_finder.client.error_handler import ResolutionErrorTracker
from thread_finder.config import Config, RateLimitConfig
from thread_finder.models.result import Match
from thread_finder.search.strategies import SearchStrategy


class FakeResponse:
    """Minimal aiohttp response: status, headers and a JSON body."""

    def __init__(self, status: int = 200, payload: Any = None, headers: Optional[Dict[str, str]] = None,
                 json_error: Optional[Exception] = None):
        self.status = status
        self.headers = headers or {}
        self._payload = payload
        self._json_error = json_error

    async def json(self, content_type=None):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class _RequestContext:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """
    Replays queued responses for GET and POST requests.

    Queue a FakeResponse, or an exception to raise when the request is made.
    Every call is recorded in ``get_calls`` / ``post_calls``.
    """

    def __init__(self, get_responses: Optional[List[Any]] = None, post_responses: Optional[List[Any]] = None):
        self.get_responses = list(get_responses or [])
        self.post_responses = list(post_responses or [])
        self.get_calls: List[Dict[str, Any]] = []
        self.post_calls: List[Dict[str, Any]] = []
        self.closed = False

    def get(self, url, params=None, headers=None):
        self.get_calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        if not self.get_responses:
            raise AssertionError(f"Unexpected GET {url}")
        return _RequestContext(self.get_responses.pop(0))

    def post(self, url, data=None, auth=None, headers=None):
        self.post_calls.append({"url": url, "data": data, "auth": auth, "headers": dict(headers or {})})
        if not self.post_responses:
            raise AssertionError(f"Unexpected POST {url}")
        return _RequestContext(self.post_responses.pop(0))

    async def close(self):
        self.closed = True


def fast_config(**overrides) -> Config:
    """Config with millisecond pacing so tests never really wait."""
    rate_limit = RateLimitConfig(
        authenticated_delay_sec=0.001,
        unauthenticated_delay_sec=0.001,
        max_delay_sec=1.0,
    )
    config = Config(rate_limit=rate_limit)
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def post_child(title: str, author: str = "someone", subreddit: str = "pics",
               permalink: Optional[str] = None, selftext: str = "", post_id: str = "abc123") -> Dict[str, Any]:
    return {
        "kind": "t3",
        "data": {
            "id": post_id,
            "title": title,
            "author": author,
            "subreddit": subreddit,
            "permalink": permalink or f"/r/{subreddit}/comments/{post_id}/post/",
            "selftext": selftext,
            "created_utc": 1700000000.0,
        },
    }


def comment_child(body: str, author: str = "someone", subreddit: str = "pics",
                  link_title: str = "Parent post", comment_id: str = "c1") -> Dict[str, Any]:
    return {
        "kind": "t1",
        "data": {
            "id": comment_id,
            "body": body,
            "author": author,
            "subreddit": subreddit,
            "link_title": link_title,
            "permalink": f"/r/{subreddit}/comments/abc123/post/{comment_id}/",
            "created_utc": 1700000000.0,
        },
    }


def listing(children: List[Dict[str, Any]], after: Optional[str] = None) -> Dict[str, Any]:
    return {"kind": "Listing", "data": {"children": children, "after": after}}


class StubFetcher:
    """Fetcher stand-in exposing only what the strategy runner consults."""

    def __init__(self, failure_threshold: int = 5):
        self.rate_limited = False
        self.failure_threshold = failure_threshold
        self.error_tracker = ResolutionErrorTracker(failure_threshold)

    def is_rate_limited(self) -> bool:
        return self.rate_limited

    def start_error_tracking(self) -> ResolutionErrorTracker:
        self.error_tracker = ResolutionErrorTracker(self.failure_threshold)
        return self.error_tracker


class StubStrategy(SearchStrategy):
    """Strategy returning a canned result, with an optional side effect."""

    def __init__(self, name: str, result=None, required_fields=(), side_effect: Optional[Callable[[], None]] = None):
        super().__init__(fetcher=None, scorer=None, config=None)
        self.name = name
        self.result = result
        self.required_fields = tuple(required_fields)
        self.side_effect = side_effect
        self.calls = 0

    async def run(self, query):
        self.calls += 1
        if self.side_effect is not None:
            self.side_effect()
        return self.result


def make_match(confidence: float, strategy: str = "stub") -> Match:
    return Match(
        url=f"https://www.reddit.com/r/pics/comments/{strategy}/",
        title="title",
        author="bob",
        subreddit="pics",
        match_confidence=confidence,
        strategy=strategy,
    )
