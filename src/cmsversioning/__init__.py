"""cmsversioning — editing history and version comparison for a CMS editor.

Public re-exports
-----------------

* **History:** :class:`HistoryManager` and its schedulers
* **Diff:** :class:`VersionDiffEngine`, :class:`VersionComparator`,
  :class:`AsyncVersionComparator`, :func:`compare_versions`
* **Configuration:** :class:`VersioningConfig`
* **Errors:** :class:`VersioningError` subclasses and :class:`ErrorCode`
* **Models:** content blocks, versions, history and diff result types

Usage::

    from cmsversioning import ContentBlock, HistoryManager

    history = HistoryManager()
    history.initialize(blocks)
    history.push_state(edited_blocks, "Updated hero")
    previous = history.undo()
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from cmsversioning.config import VersioningConfig

# ── Diff ────────────────────────────────────────────────────────────────
from cmsversioning.diff import (
    AsyncVersionComparator,
    VersionComparator,
    VersionDiffEngine,
    compare_blocks,
    compare_versions,
)

# ── Errors ──────────────────────────────────────────────────────────────
from cmsversioning.errors import (
    ErrorCode,
    VersionFetchError,
    VersioningError,
    VersioningValidationError,
)

# ── History ─────────────────────────────────────────────────────────────
from cmsversioning.history import (
    AsyncioScheduler,
    HistoryManager,
    Scheduler,
    ThreadingScheduler,
    TimerHandle,
)

# ── Models ──────────────────────────────────────────────────────────────
from cmsversioning.models import (
    BlockDiff,
    ComparisonState,
    ContentBlock,
    DiffType,
    HistoryEntry,
    SectionDiff,
    UndoRedoState,
    VersionComparisonResult,
    VersionDetail,
)

__all__ = [
    # Configuration
    "VersioningConfig",
    # History
    "HistoryManager",
    "Scheduler",
    "TimerHandle",
    "ThreadingScheduler",
    "AsyncioScheduler",
    # Diff
    "VersionDiffEngine",
    "VersionComparator",
    "AsyncVersionComparator",
    "compare_blocks",
    "compare_versions",
    # Errors
    "VersioningError",
    "ErrorCode",
    "VersioningValidationError",
    "VersionFetchError",
    # Models
    "ContentBlock",
    "VersionDetail",
    "HistoryEntry",
    "UndoRedoState",
    "DiffType",
    "BlockDiff",
    "SectionDiff",
    "VersionComparisonResult",
    "ComparisonState",
]
