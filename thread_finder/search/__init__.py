"""Search strategies and the runner that sequences them."""

from thread_finder.search.runner import RunnerState, RunOutcome, StrategyRunner
from thread_finder.search.strategies import (
    AuthorInSubredditSearch,
    BodySnippetSearch,
    ExactTitleSearch,
    SearchStrategy,
    TitleAuthorSearch,
    TitleInSubredditSearch,
    UserCommentSearch,
    build_default_strategies,
)

__all__ = [
    "RunnerState",
    "RunOutcome",
    "StrategyRunner",
    "AuthorInSubredditSearch",
    "BodySnippetSearch",
    "ExactTitleSearch",
    "SearchStrategy",
    "TitleAuthorSearch",
    "TitleInSubredditSearch",
    "UserCommentSearch",
    "build_default_strategies",
]
