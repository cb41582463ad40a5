"""
Domain models for the discovery feed.

Candidates arrive from the discovery endpoint already ordered (and scored
when preferences are active); nothing here re-sorts or re-scores them.
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional

# Text-bearing criteria coalesce behind the debounce timer; the rest
# propagate immediately.
TEXT_FIELDS = ("search", "location", "looking_for")


class Decision(str, Enum):
    """A user's verdict on a candidate."""

    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def swipe_type(self) -> str:
        """Wire value expected by the swipe-recording endpoint."""
        return "right" if self is Decision.ACCEPT else "left"


@dataclass
class Candidate:
    """A single feed entry: a matchable founder/project pair."""

    id: str
    founder_id: str
    project_id: Optional[str] = None
    compatibility_score: Optional[float] = None
    attributes: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Candidate":
        """Build a candidate from a discovery payload (already validated)."""
        projects = data.get("projects") or []
        project_id = None
        if projects and isinstance(projects[0], dict) and projects[0].get("id") is not None:
            project_id = str(projects[0]["id"])
        if project_id is None and data.get("project_id") is not None:
            project_id = str(data["project_id"])

        founder_id = data.get("founder_id") or data.get("user_id") or data["id"]

        score = data.get("preference_score", data.get("compatibility_score"))
        return cls(
            id=str(data["id"]),
            founder_id=str(founder_id),
            project_id=project_id,
            compatibility_score=float(score) if score is not None else None,
            attributes=data,
        )


@dataclass(frozen=True)
class FilterCriteria:
    """User-controlled discovery filters. Empty values mean "no filter"."""

    search: str = ""
    location: str = ""
    project_stage: str = ""
    looking_for: str = ""
    skills: tuple = ()

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def merged(self, partial: Dict[str, Any]) -> "FilterCriteria":
        unknown = set(partial) - set(self.field_names())
        if unknown:
            raise ValueError(f"Unknown filter keys: {', '.join(sorted(unknown))}")
        values = dict(partial)
        if "skills" in values:
            values["skills"] = tuple(values["skills"] or ())
        for key in TEXT_FIELDS + ("project_stage",):
            if key in values and values[key] is None:
                values[key] = ""
        return replace(self, **values)

    def has_active_filters(self) -> bool:
        return any(
            [self.search, self.location, self.project_stage, self.looking_for, self.skills]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search": self.search,
            "location": self.location,
            "project_stage": self.project_stage,
            "looking_for": self.looking_for,
            "skills": list(self.skills),
        }


class PreferenceVector(dict):
    """question id -> selected option value. Empty means scoring is off."""

    @property
    def answered_count(self) -> int:
        return sum(1 for v in self.values() if v)

    def is_active(self) -> bool:
        return self.answered_count > 0


@dataclass
class FeedPage:
    """One fetch result, in server order."""

    candidates: List[Candidate]
    exhausted: bool
    received: int  # raw item count returned by the server, before skipping invalid ones


@dataclass
class SwipeEvent:
    """Outcome of a recorded swipe."""

    candidate_id: str
    decision: Decision
    founder_id: str
    project_id: Optional[str] = None
    match_created: bool = False
