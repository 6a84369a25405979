"""Value objects shared across the resolver."""

from thread_finder.models.candidate import Candidate, CandidateKind
from thread_finder.models.query import Confidence, ExtractionQuery, QueryParseError
from thread_finder.models.result import Failure, FailureKind, Match, NoMatch, ResolutionResult

__all__ = [
    "Candidate",
    "CandidateKind",
    "Confidence",
    "ExtractionQuery",
    "QueryParseError",
    "Failure",
    "FailureKind",
    "Match",
    "NoMatch",
    "ResolutionResult",
]
