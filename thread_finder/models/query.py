"""Extraction query: the fields read off a screenshot by the vision step."""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

# Usernames the vision step reports when it could not read a real one
GENERIC_USERNAMES = frozenset({"redacted", "deleted", "[deleted]", "unknown"})


class QueryParseError(ValueError):
    """Raised when a vision payload cannot be turned into an ExtractionQuery."""


class Confidence(str, Enum):
    """Coarse confidence label attached to an extraction."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def is_generic_username(username: Optional[str]) -> bool:
    """Return True if the username is a placeholder rather than a real account."""
    return username is not None and username.strip().lower() in GENERIC_USERNAMES


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ExtractionQuery:
    """Possibly incomplete, possibly wrong fields extracted from a screenshot."""

    subreddit: Optional[str] = None
    username: Optional[str] = None
    title: Optional[str] = None
    body_snippet: Optional[str] = None
    confidence: Confidence = Confidence.LOW
    timestamp: Optional[str] = None

    def is_searchable(self) -> bool:
        """At least one of title, username or subreddit is present."""
        return any([self.title, self.username, self.subreddit])

    def has_real_username(self) -> bool:
        return bool(self.username) and not is_generic_username(self.username)

    def has_field(self, name: str) -> bool:
        """
        Check whether a named field is usable for searching.

        ``username`` only counts when it is not a generic placeholder.
        """
        if name == "username":
            return self.has_real_username()
        return bool(getattr(self, name))

    @classmethod
    def from_vision_payload(cls, payload: Union[str, Dict[str, Any]]) -> "ExtractionQuery":
        """
        Build a query from the vision model's JSON reply.

        Args:
            payload: Raw model text (optionally wrapped in Markdown code fences)
                or an already decoded dict

        Returns:
            ExtractionQuery with empty strings mapped to None

        Raises:
            QueryParseError: If the payload is not valid JSON or reports an
                extraction error without any usable field
        """
        if isinstance(payload, str):
            text = payload.strip()
            if text.startswith("```json"):
                text = text[7:]
            elif text.startswith("```"):
                text = text[3:]
            if text.endswith("```"):
                text = text[:-3]
            try:
                data = json.loads(text.strip())
            except json.JSONDecodeError as e:
                raise QueryParseError(f"Vision payload is not valid JSON: {e}") from e
        else:
            data = payload

        if not isinstance(data, dict):
            raise QueryParseError("Vision payload must be a JSON object")

        query = cls(
            subreddit=_strip_prefix(_clean(data.get("subreddit")), "r/"),
            username=_strip_prefix(_clean(data.get("username")), "u/"),
            title=_clean(data.get("title")),
            body_snippet=_clean(data.get("bodySnippet", data.get("body_snippet"))),
            confidence=_parse_confidence(data.get("confidence")),
            timestamp=_clean(data.get("timestamp")),
        )

        if data.get("error") and not query.is_searchable():
            raise QueryParseError(f"Vision extraction failed: {data['error']}")
        return query

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subreddit": self.subreddit,
            "username": self.username,
            "title": self.title,
            "body_snippet": self.body_snippet,
            "confidence": self.confidence.value,
            "timestamp": self.timestamp,
        }


def _strip_prefix(value: Optional[str], prefix: str) -> Optional[str]:
    if value and value.lower().startswith(prefix):
        return value[len(prefix):] or None
    return value


def _parse_confidence(value: Any) -> Confidence:
    try:
        return Confidence(str(value).lower())
    except ValueError:
        logger.debug(f"Unknown confidence label {value!r}, defaulting to low")
        return Confidence.LOW
