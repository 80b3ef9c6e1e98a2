"""Tests for observability/ — structured logger and metrics hooks."""

from __future__ import annotations

import io
import json
import logging
import sys
from typing import Any

from cmsversioning.config import VersioningConfig
from cmsversioning.diff.comparator import VersionComparator
from cmsversioning.history.manager import HistoryManager
from cmsversioning.errors import ErrorCode
from cmsversioning.models import ContentBlock, DiffType
from cmsversioning.observability import (
    MetricsHook,
    NoopMetricsHook,
    StructuredFormatter,
    get_logger,
    resolve_metrics,
)

# ---------------------------------------------------------------------------
# Recording hook
# ---------------------------------------------------------------------------


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> set[str]:
        return {c["name"] for c in self.increments + self.timings + self.gauges}


class TestStructuredFormatter:
    def _get_record(self, msg, exc_info=None, extra_fields=None, stack_info=None):
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        if stack_info is not None:
            record.stack_info = stack_info
        return record

    def test_basic_format(self):
        result = json.loads(StructuredFormatter().format(self._get_record("hello")))
        assert result["message"] == "hello"
        assert result["level"] == "INFO"
        assert result["logger"] == "test"
        assert "ts" in result

    def test_extra_fields_merged(self):
        record = self._get_record("msg", extra_fields={"op": "commit", "undo_count": 3})
        result = json.loads(StructuredFormatter().format(record))
        assert result["op"] == "commit"
        assert result["undo_count"] == 3

    def test_exception_info_included(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("err", exc_info=exc_info)))
        assert "ValueError" in result["exception"]

    def test_stack_info_included(self):
        record = self._get_record("msg", stack_info="Stack Trace Here")
        result = json.loads(StructuredFormatter().format(record))
        assert result["stack_info"] == "Stack Trace Here"

    def test_enum_fields_use_their_value(self):
        record = self._get_record(
            "msg",
            extra_fields={"diff_type": DiffType.MODIFIED, "code": ErrorCode.FETCH_ERROR},
        )
        result = json.loads(StructuredFormatter().format(record))
        assert result["diff_type"] == "modified"
        assert result["code"] == "FETCH_ERROR"

    def test_non_json_fields_fall_back_to_str(self):
        record = self._get_record("msg", extra_fields={"blocks": ContentBlock("k", "s", "en", "x")})
        result = json.loads(StructuredFormatter().format(record))
        assert result["blocks"].startswith("ContentBlock(")


class TestGetLogger:
    def test_returns_logger_with_handler(self):
        logger = get_logger("test.cmsversioning.unique1")
        assert isinstance(logger, logging.Logger)
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_string_level(self):
        logger = get_logger("test.cmsversioning.unique2", level="warning")
        assert logger.level == logging.WARNING

    def test_default_level_is_info(self):
        assert get_logger("test.cmsversioning.unique3").level == logging.INFO

    def test_idempotent_no_duplicate_handlers(self):
        name = "test.cmsversioning.unique4"
        get_logger(name)
        assert len(get_logger(name).handlers) == 1

    def test_custom_stream(self):
        stream = io.StringIO()
        logger = get_logger("test.cmsversioning.stream", stream=stream)
        logger.info("hello", extra={"extra_fields": {"key": "val"}})
        line = json.loads(stream.getvalue())
        assert line["key"] == "val"


class TestMetricsHookProtocol:
    def test_noop_is_instance(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_recording_hook_is_instance(self):
        assert isinstance(RecordingMetricsHook(), MetricsHook)

    def test_partial_hook_is_not_instance(self):
        class PartialHook:
            def increment(self, name, value=1, tags=None):
                pass

        assert not isinstance(PartialHook(), MetricsHook)

    def test_noop_methods_return_none(self):
        hook = NoopMetricsHook()
        assert hook.increment("x") is None
        assert hook.timing("x", 1.0) is None
        assert hook.gauge("x", 2.0, tags={"k": "v"}) is None

    def test_resolve_metrics(self):
        hook = RecordingMetricsHook()
        assert resolve_metrics(hook) is hook
        assert isinstance(resolve_metrics(None), NoopMetricsHook)


class TestMetricsWiring:
    def test_history_metrics(self, scheduler):
        hook = RecordingMetricsHook()
        history = HistoryManager(
            VersioningConfig(max_history=1, metrics=hook), scheduler=scheduler,
        )
        block = ContentBlock("k", "s", "en", "0")
        history.initialize([block])
        for text in ("1", "2"):
            history.push_state([ContentBlock("k", "s", "en", text)])
            scheduler.advance(1)
        history.push_state([ContentBlock("k", "s", "en", "3")])
        history.undo()
        history.redo()

        assert {
            "cmsversioning.history_commits_total",
            "cmsversioning.history_evictions_total",
            "cmsversioning.history_depth",
            "cmsversioning.pending_discarded_total",
            "cmsversioning.undo_total",
            "cmsversioning.redo_total",
        } <= hook.names()
        discarded = [c for c in hook.increments if c["name"] == "cmsversioning.pending_discarded_total"]
        assert discarded == [{"name": "cmsversioning.pending_discarded_total", "value": 1, "tags": {"reason": "undo"}}]

    def test_comparator_metrics(self):
        hook = RecordingMetricsHook()

        def fetch(version_id):
            if version_id == "broken":
                raise OSError("disk on fire")
            return {"id": version_id, "contentBlocks": []}

        comparator = VersionComparator(fetch, VersioningConfig(metrics=hook))
        comparator.compare("a", "b")
        comparator.compare("a", "broken")

        assert {
            "cmsversioning.comparisons_total",
            "cmsversioning.comparison_duration_ms",
            "cmsversioning.fetch_failures_total",
        } <= hook.names()
