"""Locate the Reddit post or comment behind a screenshot."""

from thread_finder.config import Config
from thread_finder.models import (
    Confidence,
    ExtractionQuery,
    Failure,
    FailureKind,
    Match,
    NoMatch,
    ResolutionResult,
)
from thread_finder.resolver import ThreadResolver

__version__ = "0.1.0"

__all__ = [
    "Config",
    "Confidence",
    "ExtractionQuery",
    "Failure",
    "FailureKind",
    "Match",
    "NoMatch",
    "ResolutionResult",
    "ThreadResolver",
]
