from typing import Any, Dict, List

# The four questions the backend weights when computing compatibility.
PREFERENCE_QUESTIONS: Dict[str, tuple] = {
    "primary_role": ("technical", "business", "product"),
    "ideal_outcome": ("acquisition", "ipo", "lifestyle"),
    "work_hours": ("regular", "flexible", "intense"),
    "work_model": ("remote_first", "hybrid", "in_person"),
}


def _is_id(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    if isinstance(v, int):
        return True
    return isinstance(v, str) and v.strip() != ""


def validate_candidate(data: Any) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Only checks what the feed core relies on; display attributes are opaque.
    """
    if not isinstance(data, dict):
        return ["Candidate must be a JSON object"]

    errors: List[str] = []

    if "id" not in data:
        errors.append("Missing required field: id")
    elif not _is_id(data["id"]):
        errors.append("Field 'id' must be a non-empty string or integer")

    projects = data.get("projects")
    if projects is not None:
        if not isinstance(projects, list):
            errors.append("Field 'projects' must be a list if provided")
        elif any(not isinstance(p, dict) or not _is_id(p.get("id")) for p in projects):
            errors.append("Every entry in 'projects' must carry an id")

    # Either field may carry the score (see Candidate.from_api).
    for field in ("preference_score", "compatibility_score"):
        score = data.get(field)
        if score is None:
            continue
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            errors.append(f"Field '{field}' must be a number if provided")
        elif not 0 <= score <= 100:
            errors.append(f"Field '{field}' must be within [0, 100]")

    return errors


def validate_preferences(data: Any) -> List[str]:
    """Validate a preference vector against the fixed question set."""
    if not isinstance(data, dict):
        return ["Preferences must be a mapping of question id to option"]

    errors: List[str] = []
    for question, answer in data.items():
        options = PREFERENCE_QUESTIONS.get(question)
        if options is None:
            errors.append(f"Unknown preference question: {question}")
            continue
        if answer in (None, ""):
            continue
        if answer not in options:
            errors.append(
                f"Invalid option '{answer}' for '{question}' (expected one of: {', '.join(options)})"
            )
    return errors


def clean_preferences(data: Dict[str, Any]) -> Dict[str, str]:
    """Drop unanswered questions so an all-blank vector becomes empty."""
    return {k: v for k, v in data.items() if v not in (None, "")}
