"""Deferred-callback schedulers used for debounced history commits.

:class:`HistoryManager` does not sleep or poll: it asks a :class:`Scheduler`
to run a callback after the debounce window and cancels the returned
:class:`TimerHandle` whenever the pending edit is superseded.

Two implementations are provided:

* :class:`ThreadingScheduler` -- one daemon :class:`threading.Timer` per
  schedule.  Works without an event loop; callbacks run on the timer
  thread, so the manager serialises state access with a lock.
* :class:`AsyncioScheduler` -- :meth:`asyncio.AbstractEventLoop.call_later`
  on a given or the running loop.  Callbacks run on the loop thread.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class TimerHandle(Protocol):
    """A scheduled callback that can be cancelled before it runs."""

    def cancel(self) -> None:
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Anything that can run a callback after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* once, *delay* seconds from now."""
        ...


class ThreadingScheduler:
    """Scheduler backed by daemon :class:`threading.Timer` instances."""

    __slots__ = ()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Parameters
    ----------
    loop:
        Loop to schedule on.  When omitted, the loop running at the time of
        each :meth:`call_later` call is used, so the scheduler must then be
        used from inside a coroutine or loop callback.
    """

    __slots__ = ("_loop",)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        return loop.call_later(delay, callback)
