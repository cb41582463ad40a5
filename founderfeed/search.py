import json
from typing import List, Mapping, Optional, Tuple

from .models import FilterCriteria
from .normalize import normalize_skills, normalize_text


def build_discovery_params(
    criteria: FilterCriteria,
    preferences: Optional[Mapping[str, str]],
    offset: int,
    limit: int,
) -> List[Tuple[str, str]]:
    """
    Returns the query parameters for one discovery page, as (key, value)
    pairs so that ``skills`` can repeat.
    Empty criteria are omitted; preferences are sent as a JSON blob only when
    at least one question is answered.
    """
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit <= 0:
        raise ValueError(f"limit must be > 0, got {limit}")

    params: List[Tuple[str, str]] = []
    for key in ("search", "location", "project_stage", "looking_for"):
        value = normalize_text(getattr(criteria, key))
        if value:
            params.append((key, value))

    for skill in normalize_skills(criteria.skills):
        params.append(("skills", skill))

    answered = {k: v for k, v in (preferences or {}).items() if v}
    if answered:
        params.append(("preferences", json.dumps(answered, sort_keys=True)))

    params.append(("offset", str(offset)))
    params.append(("limit", str(limit)))
    params.append(("discover", "true"))
    return params
