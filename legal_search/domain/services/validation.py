"""Request parameter checks shared by the use cases."""

from __future__ import annotations

from legal_search.domain.errors import InvalidLimit, InvalidQuery, InvalidThreshold

SEARCH_LIMIT_BOUNDS = (1, 100)
QA_LIMIT_BOUNDS = (1, 50)


def require_text(value: str | None, field: str) -> str:
    """Return the trimmed text or raise InvalidQuery when nothing is left."""
    text = (value or "").strip()
    if not text:
        raise InvalidQuery(f"{field} must not be empty", field=field)
    return text


def require_limit(value: int, field: str, bounds: tuple[int, int]) -> int:
    lower, upper = bounds
    if isinstance(value, bool) or not isinstance(value, int) or not lower <= value <= upper:
        raise InvalidLimit(field, value, lower, upper)
    return value


def require_threshold(value: float, field: str = "score_threshold") -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
        raise InvalidThreshold(field, value)
    return float(value)


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))
