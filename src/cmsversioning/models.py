"""Public data models for cmsversioning.

This module contains the content-block model, the version snapshot returned
by the fetch collaborator, history entries and every diff result type.  All
types are plain dataclasses; the only behaviour is copying and conversion
from/to the camelCase payloads exchanged with the CMS API.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from cmsversioning.errors import VersioningValidationError

# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------

def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise VersioningValidationError(
            f"Field '{key}' must be a string, got {type(value).__name__}",
            context={"field": key, "value": value},
        )
    return value


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise VersioningValidationError(
            f"Field '{key}' must be a string or null, got {type(value).__name__}",
            context={"field": key, "value": value},
        )
    return value


def _optional_int(payload: dict[str, Any], key: str, default: int = 0) -> int:
    value = payload.get(key)
    if value is None:
        return default
    # bool is an int subclass but never a valid ordinal.
    if isinstance(value, bool) or not isinstance(value, int):
        raise VersioningValidationError(
            f"Field '{key}' must be an integer, got {type(value).__name__}",
            context={"field": key, "value": value},
        )
    return value


# ---------------------------------------------------------------------------
# Content blocks and versions
# ---------------------------------------------------------------------------

@dataclass
class ContentBlock:
    """The smallest addressable unit of editable CMS content.

    Attributes
    ----------
    block_key:
        Identity of the block, unique within a (section, language) scope.
    section_key:
        Logical page section the block belongs to.
    language:
        Locale tag.  Comparisons are always scoped to one language.
    content:
        The authored value.
    metadata:
        Serialized auxiliary data (styling, config).  Compared by string
        equality, never parsed.
    sort_order:
        Display order within the section.
    id, block_type, created_at, updated_at:
        Persistence fields carried through from the API payload.  They take
        no part in diffing.
    """

    block_key: str
    section_key: str
    language: str
    content: str
    metadata: str | None = None
    sort_order: int = 0
    id: str | None = None
    block_type: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def copy(self) -> ContentBlock:
        """Return an independent copy.

        Every field is a scalar, so a per-field copy is already a deep copy.
        """
        return dataclasses.replace(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ContentBlock:
        """Build a block from a camelCase CMS API payload.

        Raises
        ------
        VersioningValidationError
            If a required field is missing or a field has the wrong type.
        """
        if not isinstance(payload, dict):
            raise VersioningValidationError(
                f"Content block payload must be an object, got {type(payload).__name__}",
                context={"field": "contentBlock", "value": payload},
            )
        return cls(
            block_key=_require_str(payload, "blockKey"),
            section_key=_require_str(payload, "sectionKey"),
            language=_require_str(payload, "language"),
            content=_require_str(payload, "content"),
            metadata=_optional_str(payload, "metadata"),
            sort_order=_optional_int(payload, "sortOrder"),
            id=_optional_str(payload, "id"),
            block_type=_optional_str(payload, "blockType"),
            created_at=_optional_str(payload, "createdAt"),
            updated_at=_optional_str(payload, "updatedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise back to the camelCase API shape."""
        return {
            "id": self.id,
            "blockKey": self.block_key,
            "blockType": self.block_type,
            "content": self.content,
            "language": self.language,
            "sortOrder": self.sort_order,
            "sectionKey": self.section_key,
            "metadata": self.metadata,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


def copy_blocks(blocks: Iterable[ContentBlock]) -> list[ContentBlock]:
    """Copy every block of *blocks* into a new list."""
    return [block.copy() for block in blocks]


@dataclass
class VersionDetail:
    """A persisted version of the site content, as returned by the fetch
    collaborator.

    Attributes
    ----------
    id:
        Version identifier.
    version_number:
        Monotonic version number shown to editors.
    status:
        Lifecycle status (``"Draft"``, ``"Published"``, ...).
    notes:
        Free-form editor notes.
    created_at, updated_at, published_at:
        ISO-8601 timestamps as delivered by the API.
    content_blocks:
        Every block of the version, across all languages.
    """

    id: str
    version_number: int = 0
    status: str = ""
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    published_at: str | None = None
    content_blocks: list[ContentBlock] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> VersionDetail:
        """Build a version from a camelCase CMS API payload."""
        if not isinstance(payload, dict):
            raise VersioningValidationError(
                f"Version payload must be an object, got {type(payload).__name__}",
                context={"field": "version", "value": payload},
            )
        raw_blocks = payload.get("contentBlocks") or []
        if not isinstance(raw_blocks, list):
            raise VersioningValidationError(
                "Field 'contentBlocks' must be a list",
                context={"field": "contentBlocks", "value": raw_blocks},
            )
        return cls(
            id=_require_str(payload, "id"),
            version_number=_optional_int(payload, "versionNumber"),
            status=_optional_str(payload, "status") or "",
            notes=_optional_str(payload, "notes"),
            created_at=_optional_str(payload, "createdAt"),
            updated_at=_optional_str(payload, "updatedAt"),
            published_at=_optional_str(payload, "publishedAt"),
            content_blocks=[ContentBlock.from_dict(b) for b in raw_blocks],
        )

    def blocks_for_language(self, language: str) -> list[ContentBlock]:
        """Return the blocks tagged with *language*, in stored order."""
        return [b for b in self.content_blocks if b.language == language]


# ---------------------------------------------------------------------------
# History types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HistoryEntry:
    """One committed snapshot in the undo/redo history.

    Attributes
    ----------
    blocks:
        Private copies of the blocks at commit time.  Read them through
        :meth:`copy_blocks` when handing them to callers.
    timestamp:
        Commit time in seconds since the epoch.
    description:
        Optional label supplied with the push, e.g. ``"Updated hero"``.
    """

    blocks: tuple[ContentBlock, ...]
    timestamp: float
    description: str | None = None

    def copy_blocks(self) -> list[ContentBlock]:
        return copy_blocks(self.blocks)


@dataclass(frozen=True)
class UndoRedoState:
    """Derived view of a history manager for UI binding."""

    can_undo: bool
    can_redo: bool
    undo_count: int
    redo_count: int


# ---------------------------------------------------------------------------
# Diff types
# ---------------------------------------------------------------------------

class DiffType(str, Enum):
    """Classification of a block key between two versions."""

    ADDED = "added"
    """Present only in the newer version."""

    REMOVED = "removed"
    """Present only in the older version."""

    MODIFIED = "modified"
    """Present in both, content or metadata differ."""

    UNCHANGED = "unchanged"
    """Present in both with identical content and metadata."""


@dataclass
class BlockDiff:
    """Comparison outcome for a single block key.

    ``block_a`` is the block from the older version and ``block_b`` the
    block from the newer one; either is ``None`` when absent there.
    """

    block_key: str
    section_key: str
    diff_type: DiffType
    block_a: ContentBlock | None = None
    block_b: ContentBlock | None = None
    content_changed: bool = False
    metadata_changed: bool = False

    @property
    def sort_order(self) -> int:
        if self.block_b is not None:
            return self.block_b.sort_order
        if self.block_a is not None:
            return self.block_a.sort_order
        return 0


@dataclass
class SectionDiff:
    """All block diffs of one section, with per-type counts."""

    section_key: str
    blocks: list[BlockDiff] = field(default_factory=list)
    added_count: int = 0
    removed_count: int = 0
    modified_count: int = 0
    unchanged_count: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.added_count or self.removed_count or self.modified_count)


@dataclass
class VersionComparisonResult:
    """Section-grouped comparison of two versions for one language.

    Attributes
    ----------
    version_a, version_b:
        The compared versions (older, newer).  ``None`` when the result was
        computed from bare block lists.
    language:
        The language the comparison was scoped to.
    sections:
        Section diffs sorted by section key.
    total_added, total_removed, total_modified, total_unchanged:
        Sums of the per-section counts.
    """

    version_a: VersionDetail | None
    version_b: VersionDetail | None
    language: str
    sections: list[SectionDiff] = field(default_factory=list)
    total_added: int = 0
    total_removed: int = 0
    total_modified: int = 0
    total_unchanged: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.total_added or self.total_removed or self.total_modified)

    @property
    def total_blocks(self) -> int:
        return (
            self.total_added
            + self.total_removed
            + self.total_modified
            + self.total_unchanged
        )


@dataclass
class ComparisonState:
    """UI-facing state of a version comparator.

    Attributes
    ----------
    comparison:
        The last successfully computed comparison, or ``None``.
    is_loading:
        ``True`` while version fetches are in flight.
    error:
        Human-readable message of the last fetch failure, or ``None``.
    """

    comparison: VersionComparisonResult | None = None
    is_loading: bool = False
    error: str | None = None
