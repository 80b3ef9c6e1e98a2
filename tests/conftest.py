"""Shared test fixtures for the cmsversioning test suite."""

from __future__ import annotations

from typing import Callable

import pytest

from cmsversioning.config import VersioningConfig
from cmsversioning.history.manager import HistoryManager


class FakeTimer:
    """Handle returned by :class:`FakeScheduler`."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Deterministic scheduler driven by :meth:`advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in schedule order."""
        self.now += seconds
        due = [t for t in self.timers if t.due <= self.now and not t.cancelled]
        self.timers = [t for t in self.timers if t not in due]
        for timer in due:
            timer.callback()

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]


@pytest.fixture
def config() -> VersioningConfig:
    """Default configuration: 50 entries, 500 ms debounce."""
    return VersioningConfig()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def history(config: VersioningConfig, scheduler: FakeScheduler) -> HistoryManager:
    """History manager on a fake scheduler with a fixed clock."""
    return HistoryManager(config, scheduler=scheduler, clock=lambda: 1_700_000_000.0)
