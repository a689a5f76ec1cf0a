"""
Data models for key state, rate limits and OSDR search results.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

_LOG = logging.getLogger(__name__)

DEMO_KEY = "DEMO_KEY"

RATE_LIMIT_HEADERS = ("X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset")


@dataclass(frozen=True)
class APIKeyRecord:
    """Current API key. Replaced as a whole, never mutated."""

    value: str = DEMO_KEY

    @property
    def is_fallback(self) -> bool:
        return self.value == DEMO_KEY


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Most recently observed rate-limit counters."""

    remaining: int
    limit: int
    reset_time: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {"remaining": self.remaining, "limit": self.limit, "resetTime": self.reset_time}


def parse_rate_limit_headers(headers: Mapping[str, str]) -> Optional[RateLimitSnapshot]:
    """
    Build a snapshot from response headers.

    api.nasa.gov sends X-RateLimit-Limit and X-RateLimit-Remaining; the reset
    header is optional. Returns None when the counters are missing or not numeric.
    """
    if not headers:
        return None

    lowered = {str(k).lower(): v for k, v in headers.items()}
    limit = lowered.get("x-ratelimit-limit")
    remaining = lowered.get("x-ratelimit-remaining")
    if limit is None or remaining is None:
        return None

    try:
        snapshot = RateLimitSnapshot(
            remaining=int(remaining),
            limit=int(limit),
            reset_time=str(lowered.get("x-ratelimit-reset", "")),
        )
    except (TypeError, ValueError):
        _LOG.debug("Ignoring malformed rate-limit headers: %s / %s", remaining, limit)
        return None

    if snapshot.remaining > snapshot.limit:
        _LOG.debug("Ignoring rate-limit headers with remaining above limit: %s / %s", remaining, limit)
        return None
    return snapshot


def _first_text(source: Mapping[str, Any], *keys: str) -> Optional[str]:
    """Return the first non-empty value among keys, flattening single-item lists."""
    for key in keys:
        value = source.get(key)
        if isinstance(value, list):
            value = next((item for item in value if item), None)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


@dataclass
class Study:
    """One OSDR study as shown in search results."""

    identifier: str
    title: str
    description: str
    organism: Optional[str] = None
    assay_type: Optional[str] = None
    project_type: Optional[str] = None

    @classmethod
    def from_hit(cls, hit: Mapping[str, Any], position: int = 0) -> "Study":
        """
        Parse a single search-engine hit.

        OSDR records are inconsistent between datasets, so each field walks a
        fallback chain: human-readable field, raw accession/id field, placeholder.
        """
        source = hit.get("_source") if isinstance(hit.get("_source"), Mapping) else hit

        identifier = (
            _first_text(source, "Accession", "accession", "Study Identifier")
            or _first_text(hit, "_id")
            or f"OSD-unknown-{position}"
        )
        title = (
            _first_text(source, "Study Title", "title", "Project Title")
            or f"Untitled study {identifier}"
        )
        description = (
            _first_text(source, "Study Description", "description", "Study Protocol Description")
            or "No description available."
        )

        return cls(
            identifier=identifier,
            title=title,
            description=description,
            organism=_first_text(source, "organism", "Organism", "Characteristics[Organism]"),
            assay_type=_first_text(source, "Study Assay Technology Type", "assayType"),
            project_type=_first_text(source, "Project Type", "projectType"),
        )

    def as_dict(self) -> Dict[str, Any]:
        data = {
            "identifier": self.identifier,
            "title": self.title,
            "description": self.description,
        }
        if self.organism:
            data["organism"] = self.organism
        if self.assay_type:
            data["assayType"] = self.assay_type
        if self.project_type:
            data["projectType"] = self.project_type
        return data


@dataclass
class StudySearchResult:
    """Flattened OSDR search response."""

    hits: int = 0
    studies: List[Study] = field(default_factory=list)

    @classmethod
    def from_response(cls, payload: Any) -> "StudySearchResult":
        """Flatten the nested search-engine response."""
        if not isinstance(payload, Mapping):
            _LOG.debug("Unexpected OSDR search payload type: %s", type(payload).__name__)
            return cls()

        outer = payload.get("hits")
        if not isinstance(outer, Mapping):
            return cls()

        raw_hits = outer.get("hits") or []
        studies = [
            Study.from_hit(hit, position)
            for position, hit in enumerate(raw_hits)
            if isinstance(hit, Mapping)
        ]

        total = outer.get("total", len(studies))
        if isinstance(total, Mapping):
            total = total.get("value", len(studies))
        try:
            hits = int(total)
        except (TypeError, ValueError):
            hits = len(studies)

        return cls(hits=hits, studies=studies)

    def as_dict(self) -> Dict[str, Any]:
        return {"hits": self.hits, "studies": [study.as_dict() for study in self.studies]}
