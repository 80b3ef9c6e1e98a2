"""Version diff engine: classify every block key of two versions.

Given the blocks of an older version (A) and a newer version (B), the engine
produces one :class:`BlockDiff` per block key found in either, grouped into
:class:`SectionDiff` objects.  The comparison is a pure function of its
inputs and the language filter, so identical inputs always yield identical
results, including section and block ordering.
"""

from __future__ import annotations

import json
import sys
import time
from collections import Counter
from typing import Any, Iterable

from cmsversioning.config import VersioningConfig
from cmsversioning.models import (
    BlockDiff,
    ContentBlock,
    DiffType,
    SectionDiff,
    VersionComparisonResult,
    VersionDetail,
)
from cmsversioning.observability import get_logger, resolve_metrics

log = get_logger("cmsversioning.diff")


def _index_by_key(blocks: Iterable[ContentBlock], language: str) -> dict[str, ContentBlock]:
    """Filter *blocks* to *language* and index them by block key.

    Duplicate keys are a caller contract violation; the last one wins.
    """
    index: dict[str, ContentBlock] = {}
    for block in blocks:
        if block.language == language:
            index[block.block_key] = block
    return index


def _classify(
    block_key: str,
    block_a: ContentBlock | None,
    block_b: ContentBlock | None,
) -> BlockDiff:
    content_changed = False
    metadata_changed = False

    if block_a is None and block_b is not None:
        diff_type = DiffType.ADDED
        section_key = block_b.section_key
    elif block_b is None and block_a is not None:
        diff_type = DiffType.REMOVED
        section_key = block_a.section_key
    elif block_a is not None and block_b is not None:
        content_changed = block_a.content != block_b.content
        metadata_changed = block_a.metadata != block_b.metadata
        diff_type = (
            DiffType.MODIFIED
            if content_changed or metadata_changed
            else DiffType.UNCHANGED
        )
        section_key = block_b.section_key
    else:
        raise ValueError(f"Block key {block_key!r} is absent from both versions")

    return BlockDiff(
        block_key=block_key,
        section_key=section_key,
        diff_type=diff_type,
        block_a=block_a,
        block_b=block_b,
        content_changed=content_changed,
        metadata_changed=metadata_changed,
    )


def _build_section(section_key: str, diffs: list[BlockDiff]) -> SectionDiff:
    # block_key breaks sort_order ties so the order never depends on
    # how the union of keys happened to be iterated.
    ordered = sorted(diffs, key=lambda d: (d.sort_order, d.block_key))
    counts = Counter(d.diff_type for d in ordered)
    return SectionDiff(
        section_key=section_key,
        blocks=ordered,
        added_count=counts[DiffType.ADDED],
        removed_count=counts[DiffType.REMOVED],
        modified_count=counts[DiffType.MODIFIED],
        unchanged_count=counts[DiffType.UNCHANGED],
    )


def compare_blocks(
    blocks_a: Iterable[ContentBlock],
    blocks_b: Iterable[ContentBlock],
    language: str,
) -> list[SectionDiff]:
    """Compare two block collections for one language.

    Parameters
    ----------
    blocks_a:
        Blocks of the older version.  Any language; filtered here.
    blocks_b:
        Blocks of the newer version.
    language:
        Only blocks tagged with this language are compared.

    Returns
    -------
    list[SectionDiff]
        One entry per section, sorted by section key.  Blocks inside a
        section are sorted by sort order (the newer version's when the
        block exists there), then by block key.
    """
    index_a = _index_by_key(blocks_a, language)
    index_b = _index_by_key(blocks_b, language)

    all_keys = list(index_a)
    all_keys.extend(key for key in index_b if key not in index_a)

    grouped: dict[str, list[BlockDiff]] = {}
    for block_key in all_keys:
        diff = _classify(block_key, index_a.get(block_key), index_b.get(block_key))
        grouped.setdefault(diff.section_key, []).append(diff)

    return [
        _build_section(section_key, grouped[section_key])
        for section_key in sorted(grouped)
    ]


def compare_versions(
    version_a: VersionDetail,
    version_b: VersionDetail,
    language: str,
) -> VersionComparisonResult:
    """Compare two fetched versions.  *version_a* is the older one."""
    sections = compare_blocks(version_a.content_blocks, version_b.content_blocks, language)
    return VersionComparisonResult(
        version_a=version_a,
        version_b=version_b,
        language=language,
        sections=sections,
        total_added=sum(s.added_count for s in sections),
        total_removed=sum(s.removed_count for s in sections),
        total_modified=sum(s.modified_count for s in sections),
        total_unchanged=sum(s.unchanged_count for s in sections),
    )


class VersionDiffEngine:
    """Configured front end to :func:`compare_versions`.

    Adds the default language, metrics and the optional debug dump.  Holds
    no state between calls, so one engine may serve any number of
    concurrent comparisons.

    Parameters
    ----------
    config:
        Package configuration.  Defaults to ``VersioningConfig()``.
    """

    def __init__(self, config: VersioningConfig | None = None) -> None:
        self._config = config if config is not None else VersioningConfig()
        self._metrics = resolve_metrics(self._config.metrics)

    def compare(
        self,
        version_a: VersionDetail,
        version_b: VersionDetail,
        language: str | None = None,
    ) -> VersionComparisonResult:
        """Compare *version_a* (older) with *version_b* (newer).

        *language* defaults to ``config.default_language``.
        """
        lang = language or self._config.default_language
        start = time.monotonic()
        result = compare_versions(version_a, version_b, lang)
        elapsed_ms = (time.monotonic() - start) * 1000

        tags = {"language": lang}
        self._metrics.increment("cmsversioning.comparisons_total", tags=tags)
        self._metrics.timing("cmsversioning.comparison_duration_ms", elapsed_ms, tags=tags)
        _emit_diff_metrics(self._metrics, result)

        log.debug(
            "versions compared",
            extra={
                "extra_fields": {
                    "op": "compare",
                    "version_a": version_a.id,
                    "version_b": version_b.id,
                    "language": lang,
                    "sections": len(result.sections),
                    "added": result.total_added,
                    "removed": result.total_removed,
                    "modified": result.total_modified,
                    "unchanged": result.total_unchanged,
                }
            },
        )

        if self._config.debug_dump_diff:
            _dump_comparison(result)

        return result


def _emit_diff_metrics(metrics: Any, result: VersionComparisonResult) -> None:
    """Emit ``block_diffs_total`` counters grouped by diff type."""
    for diff_type, count in (
        (DiffType.ADDED, result.total_added),
        (DiffType.REMOVED, result.total_removed),
        (DiffType.MODIFIED, result.total_modified),
        (DiffType.UNCHANGED, result.total_unchanged),
    ):
        if count:
            metrics.increment(
                "cmsversioning.block_diffs_total", count, tags={"diff_type": diff_type.value},
            )


def _dump_comparison(result: VersionComparisonResult) -> None:
    """Write a JSON summary of *result* to stderr."""
    dump: dict[str, Any] = {
        "version_a": result.version_a.id if result.version_a else None,
        "version_b": result.version_b.id if result.version_b else None,
        "language": result.language,
        "sections": [
            {
                "section_key": section.section_key,
                "changes": {
                    d.block_key: d.diff_type.value
                    for d in section.blocks
                    if d.diff_type is not DiffType.UNCHANGED
                },
                "unchanged": section.unchanged_count,
            }
            for section in result.sections
        ],
    }
    print(json.dumps(dump, indent=2, default=str), file=sys.stderr)
