"""Metrics hook protocol and no-op default implementation.

cmsversioning emits counters, timings and gauges at history transitions and
around version comparisons.  By default a :class:`NoopMetricsHook` is used.
Supply any object satisfying :class:`MetricsHook` through
``VersioningConfig(metrics=...)`` to route them to StatsD, Prometheus, etc.

Emitted metric names:

* ``cmsversioning.history_commits_total``      -- counter
* ``cmsversioning.history_evictions_total``    -- counter
* ``cmsversioning.undo_total``                 -- counter
* ``cmsversioning.redo_total``                 -- counter
* ``cmsversioning.pending_discarded_total``    -- counter
* ``cmsversioning.history_depth``              -- gauge
* ``cmsversioning.comparisons_total``          -- counter
* ``cmsversioning.comparison_duration_ms``     -- timing
* ``cmsversioning.block_diffs_total``          -- counter
* ``cmsversioning.fetch_failures_total``       -- counter
* ``cmsversioning.stale_comparisons_total``    -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(metrics: object | None) -> MetricsHook:
    """Return *metrics*, or a :class:`NoopMetricsHook` when it is ``None``."""
    return metrics if metrics is not None else NoopMetricsHook()  # type: ignore[return-value]
