from typing import Iterable, List


def normalize_text(s: str) -> str:
    """Trim and collapse internal whitespace; case is preserved for search."""
    return " ".join((s or "").strip().split())


def normalize_skills(skills: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for skill in skills:
        s = normalize_text(skill)
        key = s.lower()
        if s and key not in seen:
            seen.add(key)
            result.append(s)
    return result
