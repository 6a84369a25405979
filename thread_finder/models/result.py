"""Typed outcomes of a resolution."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class FailureKind(str, Enum):
    USER_NOT_FOUND = "user_not_found"
    RATE_LIMITED = "rate_limited"
    API_ERROR = "api_error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Match:
    """A candidate that crossed the minimum confidence threshold."""

    url: str
    title: str
    author: str
    subreddit: str
    match_confidence: float
    is_comment: bool = False
    strategy: Optional[str] = None

    def __post_init__(self):
        if not 0.0 <= self.match_confidence <= 1.0:
            raise ValueError(f"match_confidence must be in [0, 1], got {self.match_confidence}")

    @property
    def outcome(self) -> str:
        return "found"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome,
            "url": self.url,
            "title": self.title,
            "author": self.author,
            "subreddit": self.subreddit,
            "match_confidence": round(self.match_confidence, 4),
            "is_comment": self.is_comment,
            "strategy": self.strategy,
        }


@dataclass(frozen=True)
class NoMatch:
    """The search completed and nothing crossed the minimum threshold."""

    @property
    def outcome(self) -> str:
        return "not_found"

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": self.outcome}


@dataclass(frozen=True)
class Failure:
    """The search could not be completed, or the account does not exist."""

    kind: FailureKind

    @property
    def outcome(self) -> str:
        return self.kind.value

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": self.outcome}


ResolutionResult = Union[Match, NoMatch, Failure]
