"""Tests for request parameter validation."""

import pytest

from legal_search.domain.errors import InvalidLimit, InvalidQuery, InvalidThreshold
from legal_search.domain.services.validation import (
    QA_LIMIT_BOUNDS,
    SEARCH_LIMIT_BOUNDS,
    clamp,
    require_limit,
    require_text,
    require_threshold,
)


def test_require_text_trims():
    assert require_text("  عقد إيجار  ", "query_text") == "عقد إيجار"


@pytest.mark.parametrize("value", ["", "   ", "\n\t", None])
def test_require_text_rejects_blank(value):
    with pytest.raises(InvalidQuery) as exc:
        require_text(value, "question")
    assert exc.value.field == "question"


@pytest.mark.parametrize("value", [1, 10, 100])
def test_search_limit_within_bounds(value):
    assert require_limit(value, "limit", SEARCH_LIMIT_BOUNDS) == value


@pytest.mark.parametrize("value", [0, -1, 101, 500])
def test_search_limit_out_of_bounds(value):
    with pytest.raises(InvalidLimit):
        require_limit(value, "limit", SEARCH_LIMIT_BOUNDS)


def test_qa_limit_upper_bound_is_fifty():
    assert require_limit(50, "limit", QA_LIMIT_BOUNDS) == 50
    with pytest.raises(InvalidLimit):
        require_limit(51, "limit", QA_LIMIT_BOUNDS)


@pytest.mark.parametrize("value", [True, 2.0, "5"])
def test_limit_must_be_an_integer(value):
    with pytest.raises(InvalidLimit):
        require_limit(value, "limit", SEARCH_LIMIT_BOUNDS)


@pytest.mark.parametrize("value", [0, 0.0, 0.7, 1, 1.0])
def test_threshold_accepts_unit_interval(value):
    assert require_threshold(value) == float(value)


@pytest.mark.parametrize("value", [-0.01, 1.01, True, "0.5"])
def test_threshold_rejects_everything_else(value):
    with pytest.raises(InvalidThreshold):
        require_threshold(value)


def test_clamp():
    assert clamp(500, 1, 100) == 100
    assert clamp(0, 1, 100) == 1
    assert clamp(42, 1, 100) == 42
