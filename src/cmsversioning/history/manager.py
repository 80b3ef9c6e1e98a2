"""Undo/redo history for draft edits of a content-block collection.

The editor calls :meth:`HistoryManager.push_state` on every change.  Pushes
are debounced: the snapshot is held as *pending* and committed only once
``debounce_ms`` passes without another push, so a burst of keystrokes
becomes a single undo step.  Committing moves the current *present* onto
the bounded *past* stack and clears *future*; undo and redo move entries
between the two stacks.

Unavailable operations (undo with an empty past, redo with an empty future)
return ``None`` and leave the state untouched.  Every block list that enters
or leaves the manager is copied, so callers may mutate what they pass in or
get back without corrupting history.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Iterable

from cmsversioning.config import VersioningConfig
from cmsversioning.models import ContentBlock, HistoryEntry, UndoRedoState
from cmsversioning.observability import get_logger, resolve_metrics

from .scheduler import Scheduler, ThreadingScheduler, TimerHandle

log = get_logger("cmsversioning.history")


class _PendingPush:
    """A pushed snapshot waiting for its debounce window to elapse."""

    __slots__ = ("blocks", "description")

    def __init__(self, blocks: tuple[ContentBlock, ...], description: str | None) -> None:
        self.blocks = blocks
        self.description = description


class HistoryManager:
    """Bounded, debounced undo/redo history.

    Parameters
    ----------
    config:
        Supplies ``max_history``, ``debounce_ms`` and the metrics hook.
        Defaults to ``VersioningConfig()``.
    scheduler:
        Runs the debounced commit.  Defaults to :class:`ThreadingScheduler`.
    clock:
        Returns the current time in epoch seconds for entry timestamps.
        Defaults to :func:`time.time`.
    on_change:
        Called with the new :class:`UndoRedoState` after every transition,
        including commits fired by the scheduler.
    """

    def __init__(
        self,
        config: VersioningConfig | None = None,
        *,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] | None = None,
        on_change: Callable[[UndoRedoState], None] | None = None,
    ) -> None:
        self._config = config if config is not None else VersioningConfig()
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._clock = clock if clock is not None else time.time
        self._on_change = on_change
        self._metrics = resolve_metrics(self._config.metrics)

        self._lock = threading.RLock()
        self._past: list[HistoryEntry] = []
        self._present: HistoryEntry | None = None
        self._future: list[HistoryEntry] = []

        self._pending: _PendingPush | None = None
        self._timer: TimerHandle | None = None
        # Bumped on every schedule and cancel; a timer only commits if its
        # generation is still current when it fires.
        self._generation = 0

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def can_undo(self) -> bool:
        with self._lock:
            return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        with self._lock:
            return len(self._future) > 0

    @property
    def undo_count(self) -> int:
        with self._lock:
            return len(self._past)

    @property
    def redo_count(self) -> int:
        with self._lock:
            return len(self._future)

    @property
    def has_pending(self) -> bool:
        """``True`` while a pushed snapshot is waiting to be committed."""
        with self._lock:
            return self._pending is not None

    @property
    def current_entry(self) -> HistoryEntry | None:
        with self._lock:
            return self._present

    @property
    def state(self) -> UndoRedoState:
        with self._lock:
            return self._state()

    def get_current_state(self) -> list[ContentBlock] | None:
        """Return a copy of the present blocks, or ``None`` before
        initialization.  Has no side effects."""
        with self._lock:
            if self._present is None:
                return None
            return self._present.copy_blocks()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def initialize(self, blocks: Iterable[ContentBlock]) -> None:
        """Reset the history to a single present snapshot of *blocks*.

        Discards past, future and any pending push.  Used when the editor
        switches to another document.
        """
        snapshot = _snapshot(blocks)
        with self._lock:
            self._cancel_pending()
            self._past = []
            self._future = []
            self._present = HistoryEntry(blocks=snapshot, timestamp=self._clock())
            state = self._state()
        log.debug(
            "history initialized",
            extra={"extra_fields": {"op": "initialize", "blocks": len(snapshot)}},
        )
        self._notify(state)

    def push_state(
        self,
        blocks: Iterable[ContentBlock],
        description: str | None = None,
    ) -> None:
        """Record *blocks* as pending and (re)start the debounce timer.

        Returns immediately.  The snapshot is committed when the timer
        fires, unless a later push, undo, redo, clear or initialize
        supersedes it first.
        """
        snapshot = _snapshot(blocks)
        with self._lock:
            self._cancel_pending()
            self._pending = _PendingPush(snapshot, description)
            generation = self._generation
            self._timer = self._scheduler.call_later(
                self._config.debounce_seconds,
                lambda: self._on_timer(generation),
            )

    def flush(self) -> bool:
        """Commit the pending snapshot now instead of waiting for the timer.

        Returns ``True`` if a pending snapshot was committed.
        """
        with self._lock:
            if self._pending is None:
                return False
            pending = self._pending
            self._cancel_pending()
            self._commit(pending)
            state = self._state()
        self._notify(state)
        return True

    def undo(self) -> list[ContentBlock] | None:
        """Step back one entry and return a copy of its blocks.

        Returns ``None`` without touching any state if there is nothing to
        undo.  A pending, uncommitted push is discarded, not committed.
        """
        with self._lock:
            if not self._past:
                return None
            self._discard_pending("undo")
            previous = self._past.pop()
            if self._present is not None:
                self._future.insert(0, self._present)
            self._present = previous
            result = previous.copy_blocks()
            state = self._state()
        self._metrics.increment("cmsversioning.undo_total")
        self._notify(state)
        return result

    def redo(self) -> list[ContentBlock] | None:
        """Step forward one entry and return a copy of its blocks.

        Returns ``None`` without touching any state if there is nothing to
        redo.  A pending, uncommitted push is discarded, not committed.
        """
        with self._lock:
            if not self._future:
                return None
            self._discard_pending("redo")
            following = self._future.pop(0)
            # past + future never exceeds max_history, so no eviction here.
            if self._present is not None:
                self._past.append(self._present)
            self._present = following
            result = following.copy_blocks()
            state = self._state()
        self._metrics.increment("cmsversioning.redo_total")
        self._notify(state)
        return result

    def clear_history(self) -> None:
        """Drop past and future entries and any pending push.  The present
        snapshot is kept."""
        with self._lock:
            self._cancel_pending()
            self._past = []
            self._future = []
            state = self._state()
        self._notify(state)

    def close(self) -> None:
        """Cancel the pending debounce timer, if any."""
        with self._lock:
            self._cancel_pending()

    def __enter__(self) -> HistoryManager:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals (lock held by caller unless noted)
    # ------------------------------------------------------------------

    def _on_timer(self, generation: int) -> None:
        """Scheduler callback; acquires the lock itself."""
        with self._lock:
            if generation != self._generation or self._pending is None:
                return
            pending = self._pending
            self._cancel_pending()
            self._commit(pending)
            state = self._state()
        self._notify(state)

    def _commit(self, pending: _PendingPush) -> None:
        entry = HistoryEntry(
            blocks=pending.blocks,
            timestamp=self._clock(),
            description=pending.description,
        )
        if self._present is None:
            self._present = entry
        else:
            self._past.append(self._present)
            self._evict()
            self._future = []
            self._present = entry

        self._metrics.increment("cmsversioning.history_commits_total")
        self._metrics.gauge("cmsversioning.history_depth", float(len(self._past)))
        log.debug(
            "history commit",
            extra={
                "extra_fields": {
                    "op": "commit",
                    "description": pending.description,
                    "blocks": len(pending.blocks),
                    "undo_count": len(self._past),
                }
            },
        )

    def _evict(self) -> None:
        overflow = len(self._past) - self._config.max_history
        if overflow > 0:
            del self._past[:overflow]
            self._metrics.increment("cmsversioning.history_evictions_total", overflow)

    def _discard_pending(self, reason: str) -> None:
        if self._pending is not None:
            self._metrics.increment(
                "cmsversioning.pending_discarded_total", tags={"reason": reason},
            )
            log.debug(
                "pending edit discarded",
                extra={"extra_fields": {"op": reason, "description": self._pending.description}},
            )
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None
        self._generation += 1

    def _state(self) -> UndoRedoState:
        return UndoRedoState(
            can_undo=len(self._past) > 0,
            can_redo=len(self._future) > 0,
            undo_count=len(self._past),
            redo_count=len(self._future),
        )

    def _notify(self, state: UndoRedoState) -> None:
        if self._on_change is not None:
            self._on_change(state)


def _snapshot(blocks: Iterable[ContentBlock]) -> tuple[ContentBlock, ...]:
    return tuple(block.copy() for block in blocks)
