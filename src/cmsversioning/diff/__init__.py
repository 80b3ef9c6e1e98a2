"""Version comparison for the CMS diff viewer.

Exports
-------
compare_blocks
    Section-grouped diff of two block collections for one language.
compare_versions
    The same over two fetched versions, with grand totals.
VersionDiffEngine
    Configured comparison with metrics and debug dumps.
VersionComparator
    Fetches two versions synchronously and tracks result/error state.
AsyncVersionComparator
    Concurrent fetches with stale-result protection.
"""

from .comparator import AsyncVersionComparator, VersionComparator
from .engine import VersionDiffEngine, compare_blocks, compare_versions

__all__ = [
    "AsyncVersionComparator",
    "VersionComparator",
    "VersionDiffEngine",
    "compare_blocks",
    "compare_versions",
]
