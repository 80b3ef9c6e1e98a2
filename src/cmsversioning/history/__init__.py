"""Undo/redo history for the CMS editor.

Exports
-------
HistoryManager
    Debounced, bounded undo/redo over content-block snapshots.
Scheduler, TimerHandle
    Protocols for the deferred commit.
ThreadingScheduler, AsyncioScheduler
    Scheduler implementations.
"""

from .manager import HistoryManager
from .scheduler import AsyncioScheduler, Scheduler, ThreadingScheduler, TimerHandle

__all__ = [
    "AsyncioScheduler",
    "HistoryManager",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
]
