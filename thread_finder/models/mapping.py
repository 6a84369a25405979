"""Mapping functions to convert Reddit listing JSON to candidates."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from thread_finder.models.candidate import Candidate, CandidateKind

logger = logging.getLogger(__name__)

POST_KIND = "t3"
COMMENT_KIND = "t1"


def _created_at(data: Dict[str, Any]) -> Optional[datetime]:
    created_utc = data.get("created_utc")
    if created_utc is None:
        return None
    try:
        return datetime.fromtimestamp(float(created_utc), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def post_to_candidate(data: Dict[str, Any]) -> Candidate:
    """
    Convert the ``data`` object of a ``t3`` listing child to a Candidate.

    Args:
        data: Post fields as returned by the Reddit JSON API

    Returns:
        A post Candidate
    """
    # Deleted accounts come back without an author
    author = data.get("author") or "[deleted]"
    post_id = data.get("id")
    return Candidate(
        kind=CandidateKind.POST,
        permalink=data["permalink"],
        title=data.get("title") or "",
        author=author,
        subreddit=data.get("subreddit") or "",
        body_text=data.get("selftext") or None,
        created_at=_created_at(data),
        fullname=f"{POST_KIND}_{post_id}" if post_id else None,
    )


def comment_to_candidate(data: Dict[str, Any]) -> Candidate:
    """
    Convert the ``data`` object of a ``t1`` listing child to a Candidate.

    Args:
        data: Comment fields as returned by the Reddit JSON API

    Returns:
        A comment Candidate whose title is the parent post title
    """
    comment_id = data.get("id")
    return Candidate(
        kind=CandidateKind.COMMENT,
        permalink=data["permalink"],
        title=data.get("link_title") or "",
        author=data.get("author") or "[deleted]",
        subreddit=data.get("subreddit") or "",
        body_text=data.get("body") or "",
        created_at=_created_at(data),
        fullname=f"{COMMENT_KIND}_{comment_id}" if comment_id else None,
    )


def listing_children(response: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return the ``data.children`` array of a listing, or an empty list."""
    if not isinstance(response, dict):
        return []
    data = response.get("data")
    if not isinstance(data, dict):
        return []
    children = data.get("children")
    return children if isinstance(children, list) else []


def listing_after(response: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the pagination cursor of a listing, if any."""
    if not isinstance(response, dict) or not isinstance(response.get("data"), dict):
        return None
    return response["data"].get("after") or None


def listing_to_candidates(response: Optional[Dict[str, Any]]) -> List[Candidate]:
    """
    Convert a search or user listing to candidates, preserving API order.

    Children of unknown kinds are ignored and malformed children are skipped
    with a warning.
    """
    candidates = []
    for child in listing_children(response):
        if not isinstance(child, dict):
            continue
        kind = child.get("kind")
        data = child.get("data") or {}
        try:
            if kind == POST_KIND:
                candidates.append(post_to_candidate(data))
            elif kind == COMMENT_KIND:
                candidates.append(comment_to_candidate(data))
        except (KeyError, TypeError) as e:
            logger.warning(f"Skipping malformed {kind} listing child: {e!r}")
    return candidates
