"""Configuration for cmsversioning.

:class:`VersioningConfig` is a plain dataclass that captures every tuneable
knob of the package.  Instances are shared by :class:`HistoryManager`,
:class:`VersionDiffEngine` and the version comparators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_MAX_HISTORY = 50
"""Number of undo steps kept before the oldest entries are evicted."""

DEFAULT_DEBOUNCE_MS = 500
"""Quiet period after the last edit before a snapshot is committed."""


@dataclass
class VersioningConfig:
    """Complete configuration for the history and diff engines.

    Every parameter has a sensible default, so ``VersioningConfig()`` is a
    valid configuration.

    Parameters
    ----------
    max_history:
        Maximum number of entries kept in the undo stack.  When a commit
        would exceed it, the oldest entries are dropped first.
    debounce_ms:
        Debounce window in milliseconds.  Rapid ``push_state`` calls within
        this window collapse into a single undo step.  ``0`` commits on the
        next scheduler tick.
    default_language:
        Locale tag used by the diff engine when a comparison does not name
        one explicitly.
    metrics:
        Optional :class:`~cmsversioning.observability.MetricsHook`
        implementation.  ``None`` selects the no-op hook.
    debug_dump_diff:
        Write a JSON summary of every computed comparison to *stderr*.
    """

    # ── History ─────────────────────────────────────────────────────────
    max_history: int = DEFAULT_MAX_HISTORY

    debounce_ms: int = DEFAULT_DEBOUNCE_MS

    # ── Diff ────────────────────────────────────────────────────────────
    default_language: str = "en"

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_diff: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_history < 1:
            raise ValueError(f"max_history must be >= 1, got {self.max_history}")
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must be >= 0, got {self.debounce_ms}")
        if not self.default_language:
            raise ValueError("default_language must be a non-empty locale tag")

    @property
    def debounce_seconds(self) -> float:
        """The debounce window expressed in seconds, as schedulers expect."""
        return self.debounce_ms / 1000.0
