"""Tests for config.py and errors.py"""

from __future__ import annotations

import pytest

import cmsversioning
from cmsversioning.config import DEFAULT_DEBOUNCE_MS, DEFAULT_MAX_HISTORY, VersioningConfig
from cmsversioning.errors import (
    ErrorCode,
    VersionFetchError,
    VersioningError,
    VersioningValidationError,
)


class TestVersioningConfig:
    def test_defaults(self):
        config = VersioningConfig()
        assert config.max_history == DEFAULT_MAX_HISTORY == 50
        assert config.debounce_ms == DEFAULT_DEBOUNCE_MS == 500
        assert config.default_language == "en"
        assert config.metrics is None
        assert config.debug_dump_diff is False

    def test_debounce_seconds(self):
        assert VersioningConfig(debounce_ms=250).debounce_seconds == 0.25

    @pytest.mark.parametrize(
        ("kwargs", "match"),
        [
            ({"max_history": 0}, "max_history"),
            ({"debounce_ms": -1}, "debounce_ms"),
            ({"default_language": ""}, "default_language"),
        ],
    )
    def test_invalid_values_rejected(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            VersioningConfig(**kwargs)

    def test_zero_debounce_allowed(self):
        assert VersioningConfig(debounce_ms=0).debounce_seconds == 0.0


class TestErrors:
    def test_validation_error(self):
        err = VersioningValidationError("bad", context={"field": "blockKey", "value": None})
        assert err.code == ErrorCode.VALIDATION_ERROR
        assert err.message == "bad"
        assert str(err) == "bad"
        assert isinstance(err, VersioningError)

    def test_fetch_error_chains_cause(self):
        cause = TimeoutError("slow")
        err = VersionFetchError("fetch failed", context={"version_id": "v1"}, cause=cause)
        assert err.code == ErrorCode.FETCH_ERROR
        assert err.cause is cause
        assert err.__cause__ is cause

    def test_context_defaults_to_empty_dict(self):
        assert VersionFetchError("x").context == {}

    def test_repr(self):
        err = VersionFetchError("nope", context={"version_id": "v9"})
        assert repr(err) == (
            "VersionFetchError(code=<ErrorCode.FETCH_ERROR: 'FETCH_ERROR'>, "
            "message='nope', context={'version_id': 'v9'})"
        )

    def test_repr_without_context(self):
        assert "context" not in repr(VersioningValidationError("bad"))

    def test_error_code_is_str(self):
        assert ErrorCode.FETCH_ERROR == "FETCH_ERROR"


def test_public_surface_exports():
    for name in cmsversioning.__all__:
        assert hasattr(cmsversioning, name), name
