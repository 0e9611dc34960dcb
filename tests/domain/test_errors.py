"""Tests for the domain error family."""

import dataclasses

import pytest

from legal_search.domain.errors import (
    AuthenticationError,
    ConfigurationError,
    DomainError,
    EmbeddingError,
    IndexUnavailable,
    InvalidFilter,
    InvalidLimit,
    InvalidQuery,
    InvalidThreshold,
    PartialFailure,
    SynthesisFailure,
    ValidationError,
)


@pytest.mark.parametrize(
    "error_cls",
    [InvalidQuery, InvalidFilter, InvalidLimit, InvalidThreshold],
)
def test_request_errors_are_validation_errors(error_cls):
    assert issubclass(error_cls, ValidationError)
    assert issubclass(error_cls, DomainError)


@pytest.mark.parametrize(
    "error_cls",
    [
        IndexUnavailable,
        PartialFailure,
        SynthesisFailure,
        EmbeddingError,
        ConfigurationError,
        AuthenticationError,
    ],
)
def test_backend_errors_are_not_validation_errors(error_cls):
    assert issubclass(error_cls, DomainError)
    assert not issubclass(error_cls, ValidationError)


def test_invalid_limit_names_field_and_bounds():
    err = InvalidLimit("limit", 500, 1, 100)
    assert err.field == "limit"
    assert (err.value, err.lower, err.upper) == (500, 1, 100)
    assert str(err) == "limit must be between 1 and 100, got 500"


def test_invalid_query_defaults_to_query_text_field():
    err = InvalidQuery()
    assert err.field == "query_text"
    assert "empty" in str(err)


def test_invalid_threshold_message():
    err = InvalidThreshold("score_threshold", 1.5)
    assert err.field == "score_threshold"
    assert str(err) == "score_threshold must be between 0.0 and 1.0, got 1.5"


def test_partial_failure_is_frozen_and_readable():
    err = PartialFailure(path="sparse", reason="timeout")
    assert str(err) == "sparse retrieval failed: timeout"
    with pytest.raises(dataclasses.FrozenInstanceError):
        err.path = "dense"  # type: ignore[misc]


def test_domain_errors_can_be_raised_and_caught_as_base():
    with pytest.raises(DomainError, match="qdrant down"):
        raise IndexUnavailable("qdrant down")
