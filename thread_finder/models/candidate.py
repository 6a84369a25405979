"""Candidate posts and comments fetched while resolving a query."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CandidateKind(str, Enum):
    POST = "post"
    COMMENT = "comment"


@dataclass(frozen=True)
class Candidate:
    """
    A Reddit submission or comment returned by a search.

    For comments ``title`` holds the parent post's title and ``body_text`` the
    comment body. Candidates only live for the duration of one strategy call.
    """

    kind: CandidateKind
    permalink: str
    title: str
    author: str
    subreddit: str
    body_text: Optional[str] = None
    created_at: Optional[datetime] = None
    fullname: Optional[str] = None

    @property
    def is_comment(self) -> bool:
        return self.kind is CandidateKind.COMMENT
