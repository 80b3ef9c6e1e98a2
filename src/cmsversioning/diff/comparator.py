"""Version comparators: fetch two versions by id and diff them.

The comparators own the loading / error / result state a diff viewer binds
to.  Fetching is delegated to an injected ``fetch_version(version_id)``
callable (a coroutine function for :class:`AsyncVersionComparator`), which
may return a :class:`VersionDetail` or the raw API payload dict.

Fetch failures never produce a partial diff: the error message is stored in
``state.error`` and the last good comparison is left in place.  The async
comparator fetches both versions concurrently and discards results of a
request that was superseded or cancelled while its fetches were in flight.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from cmsversioning.config import VersioningConfig
from cmsversioning.errors import VersionFetchError, VersioningValidationError
from cmsversioning.models import ComparisonState, VersionComparisonResult, VersionDetail
from cmsversioning.observability import get_logger, resolve_metrics

from .engine import VersionDiffEngine

log = get_logger("cmsversioning.diff")

FetchVersion = Callable[[str], Any]
AsyncFetchVersion = Callable[[str], Awaitable[Any]]


def _coerce_version(version_id: str, fetched: Any) -> VersionDetail:
    """Accept either a :class:`VersionDetail` or an API payload dict."""
    if isinstance(fetched, VersionDetail):
        return fetched
    try:
        return VersionDetail.from_dict(fetched)
    except VersioningValidationError as exc:
        raise VersionFetchError(
            message=f"Version {version_id} returned an invalid payload: {exc.message}",
            context={"version_id": version_id, **exc.context},
            cause=exc,
        ) from exc


def _fetch_failed(version_id: str, exc: Exception) -> VersionFetchError:
    return VersionFetchError(
        message=str(exc) or f"Failed to fetch version {version_id}",
        context={"version_id": version_id},
        cause=exc,
    )


class _ComparatorBase:
    """State handling shared by the sync and async comparators."""

    def __init__(
        self,
        config: VersioningConfig | None = None,
        *,
        engine: VersionDiffEngine | None = None,
    ) -> None:
        self._config = config if config is not None else VersioningConfig()
        self._engine = engine if engine is not None else VersionDiffEngine(self._config)
        self._metrics = resolve_metrics(self._config.metrics)
        self.state = ComparisonState()
        self._last_request: tuple[str | None, str | None, str | None] | None = None

    @property
    def comparison(self) -> VersionComparisonResult | None:
        return self.state.comparison

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def error(self) -> str | None:
        return self.state.error

    def _record_failure(self, exc: VersionFetchError) -> None:
        self._metrics.increment("cmsversioning.fetch_failures_total")
        log.warning(
            "Version comparison failed",
            extra={
                "extra_fields": {
                    "op": "compare",
                    "version_id": exc.context.get("version_id"),
                    "error": exc.message,
                }
            },
        )
        self.state.error = exc.message


class VersionComparator(_ComparatorBase):
    """Synchronous comparator.  Fetches the two versions one after the other.

    Parameters
    ----------
    fetch_version:
        ``fetch_version(version_id)`` returning a :class:`VersionDetail` or
        an API payload dict.  Exceptions it raises become
        :class:`VersionFetchError`.
    config:
        Package configuration.
    engine:
        Diff engine override; defaults to one built from *config*.
    """

    def __init__(
        self,
        fetch_version: FetchVersion,
        config: VersioningConfig | None = None,
        *,
        engine: VersionDiffEngine | None = None,
    ) -> None:
        super().__init__(config, engine=engine)
        self._fetch_version = fetch_version

    def fetch_version(self, version_id: str) -> VersionDetail:
        """Fetch one version through the collaborator.

        Raises
        ------
        VersionFetchError
            If the collaborator raises or returns an invalid payload.
        """
        try:
            fetched = self._fetch_version(version_id)
        except Exception as exc:
            raise _fetch_failed(version_id, exc) from exc
        return _coerce_version(version_id, fetched)

    def fetch_and_compare(
        self,
        version_id_a: str,
        version_id_b: str,
        language: str | None = None,
    ) -> VersionComparisonResult:
        """Fetch both versions and compare them.  Raises on fetch failure."""
        version_a = self.fetch_version(version_id_a)
        version_b = self.fetch_version(version_id_b)
        return self._engine.compare(version_a, version_b, language)

    def compare(
        self,
        version_id_a: str | None,
        version_id_b: str | None,
        language: str | None = None,
    ) -> ComparisonState:
        """Compare two versions and update :attr:`state`.

        With either id unset the comparison is cleared and nothing is
        fetched.  A fetch failure is stored in ``state.error``.
        """
        self._last_request = (version_id_a, version_id_b, language)
        if not version_id_a or not version_id_b:
            self.state.comparison = None
            return self.state

        self.state.is_loading = True
        self.state.error = None
        try:
            self.state.comparison = self.fetch_and_compare(version_id_a, version_id_b, language)
        except VersionFetchError as exc:
            self._record_failure(exc)
        finally:
            self.state.is_loading = False
        return self.state

    def refresh(self) -> ComparisonState:
        """Re-run the last requested comparison."""
        if self._last_request is None:
            return self.state
        return self.compare(*self._last_request)


class AsyncVersionComparator(_ComparatorBase):
    """Asynchronous comparator with concurrent fetches and stale-result
    protection.

    Every :meth:`compare`, :meth:`refresh` and :meth:`cancel` starts a new
    request generation.  When a request's fetches resolve after its
    generation was superseded, its outcome (result or error) is dropped and
    :attr:`state` is left to the newer request.

    Parameters
    ----------
    fetch_version:
        Coroutine function ``fetch_version(version_id)`` returning a
        :class:`VersionDetail` or an API payload dict.
    config:
        Package configuration.
    engine:
        Diff engine override; defaults to one built from *config*.
    """

    def __init__(
        self,
        fetch_version: AsyncFetchVersion,
        config: VersioningConfig | None = None,
        *,
        engine: VersionDiffEngine | None = None,
    ) -> None:
        super().__init__(config, engine=engine)
        self._fetch_version = fetch_version
        self._generation = 0

    async def fetch_version(self, version_id: str) -> VersionDetail:
        """Fetch one version through the collaborator.

        Raises
        ------
        VersionFetchError
            If the collaborator raises or returns an invalid payload.
        """
        try:
            fetched = await self._fetch_version(version_id)
        except Exception as exc:
            raise _fetch_failed(version_id, exc) from exc
        return _coerce_version(version_id, fetched)

    async def fetch_and_compare(
        self,
        version_id_a: str,
        version_id_b: str,
        language: str | None = None,
    ) -> VersionComparisonResult:
        """Fetch both versions concurrently and compare them.

        Raises the first :class:`VersionFetchError` if either fetch fails.
        The other fetch is cancelled rather than left running.
        """
        tasks = [
            asyncio.ensure_future(self.fetch_version(version_id_a)),
            asyncio.ensure_future(self.fetch_version(version_id_b)),
        ]
        try:
            version_a, version_b = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        return self._engine.compare(version_a, version_b, language)

    async def compare(
        self,
        version_id_a: str | None,
        version_id_b: str | None,
        language: str | None = None,
    ) -> ComparisonState:
        """Compare two versions and update :attr:`state`, unless a newer
        request supersedes this one before its fetches resolve.

        ``is_loading`` is cleared however the request ends, including
        cancellation of the awaiting task and unexpected engine errors,
        as long as no newer request owns the state.
        """
        self._generation += 1
        generation = self._generation
        self._last_request = (version_id_a, version_id_b, language)

        if not version_id_a or not version_id_b:
            self.state.comparison = None
            self.state.is_loading = False
            return self.state

        self.state.is_loading = True
        self.state.error = None
        try:
            try:
                result = await self.fetch_and_compare(version_id_a, version_id_b, language)
            except VersionFetchError as exc:
                if not self._is_stale(generation, version_id_a, version_id_b):
                    self._record_failure(exc)
                return self.state

            if not self._is_stale(generation, version_id_a, version_id_b):
                self.state.comparison = result
            return self.state
        finally:
            if generation == self._generation:
                self.state.is_loading = False

    async def refresh(self) -> ComparisonState:
        """Re-run the last requested comparison."""
        if self._last_request is None:
            return self.state
        return await self.compare(*self._last_request)

    def cancel(self) -> None:
        """Invalidate any in-flight request, e.g. when the viewer closes."""
        self._generation += 1
        self.state.is_loading = False

    def _is_stale(self, generation: int, version_id_a: str, version_id_b: str) -> bool:
        if generation == self._generation:
            return False
        self._metrics.increment("cmsversioning.stale_comparisons_total")
        log.debug(
            "stale comparison discarded",
            extra={
                "extra_fields": {
                    "op": "compare",
                    "version_a": version_id_a,
                    "version_b": version_id_b,
                }
            },
        )
        return True
