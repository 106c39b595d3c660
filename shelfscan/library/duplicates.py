"""
Duplicate Detection for ShelfScan

Groups catalog entries that are probably the same book:
- Exact identifier match (stored form, case-sensitive)
- Fuzzy title + author match (edit-distance similarity)
- First-match clustering into disjoint groups
- Save-time check of a new entry against the catalog

Clustering is seeded by the first unprocessed entry in input order and
only compares later entries against that seed. It is not a transitive
closure: if A~B and B~C but A!~C, C is not pulled into A's group.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from loguru import logger

from shelfscan.library.similarity import normalized_similarity


@dataclass(frozen=True)
class CatalogEntry:
    """Read-only view of a catalog book."""

    id: str
    title: str
    author: Optional[str] = None
    isbn: Optional[str] = None


@dataclass
class DuplicateGroup:
    """
    Likely duplicates, in catalog order.

    Always holds at least two entries.
    """

    entries: list[CatalogEntry] = field(default_factory=list)

    @property
    def ids(self) -> list[str]:
        return [entry.id for entry in self.entries]

    @property
    def primary(self) -> CatalogEntry:
        """Default entry to keep."""
        return self.entries[0]

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self.ids

    def ids_to_remove(self, keep_id: str) -> list[str]:
        """
        Keep-one / delete-rest resolution.

        Raises:
            ValueError: If ``keep_id`` is not part of this group
        """
        if keep_id not in self:
            raise ValueError(f"Entry '{keep_id}' is not a member of this duplicate group")
        return [entry_id for entry_id in self.ids if entry_id != keep_id]


class DuplicateDetector:
    """
    Finds likely-duplicate catalog entries.

    O(n^2) pairwise comparison; fine for personal-library sizes. The input
    list is treated as an immutable snapshot and is never modified.

    Usage:
        detector = DuplicateDetector()
        groups = detector.find_duplicates(entries)
        for group in groups:
            print(group.ids)
    """

    SIMILARITY_THRESHOLD = 0.8

    def __init__(self, similarity_threshold: float = SIMILARITY_THRESHOLD):
        """
        Initialize detector.

        Args:
            similarity_threshold: Title and author similarity must both exceed this
        """
        self.similarity_threshold = similarity_threshold

    def is_duplicate(self, a: CatalogEntry, b: CatalogEntry) -> bool:
        """
        Decide whether two entries describe the same book.

        Identical non-empty identifiers short-circuit to True. Otherwise
        both title and author similarity must exceed the threshold; a
        missing author counts as an empty string.
        """
        if a.isbn and b.isbn and a.isbn == b.isbn:
            return True

        title_similarity = normalized_similarity(a.title or "", b.title or "")
        if title_similarity <= self.similarity_threshold:
            return False

        author_similarity = normalized_similarity(a.author or "", b.author or "")
        return author_similarity > self.similarity_threshold

    def find_duplicates(self, entries: Sequence[CatalogEntry]) -> list[DuplicateGroup]:
        """
        Partition entries into disjoint groups of likely duplicates.

        Args:
            entries: Catalog snapshot

        Returns:
            Groups of two or more entries, ordered by their first member
        """
        groups = []
        processed: set[int] = set()

        for i, entry in enumerate(entries):
            if i in processed:
                continue

            processed.add(i)
            members = [entry]

            for j in range(i + 1, len(entries)):
                if j in processed:
                    continue
                if self.is_duplicate(entry, entries[j]):
                    members.append(entries[j])
                    processed.add(j)

            if len(members) > 1:
                groups.append(DuplicateGroup(entries=members))

        logger.info(f"Duplicate scan over {len(entries)} entries found {len(groups)} group(s)")
        return groups

    def find_matches(
        self,
        candidate: CatalogEntry,
        entries: Sequence[CatalogEntry],
    ) -> list[CatalogEntry]:
        """
        Save-time check: existing entries that duplicate ``candidate``.

        An entry with the candidate's own id is skipped, so re-saving an
        edited book does not match itself.
        """
        matches = [
            entry for entry in entries
            if entry.id != candidate.id and self.is_duplicate(candidate, entry)
        ]

        if matches:
            logger.info(f"'{candidate.title}' matches {len(matches)} existing catalog entr{'y' if len(matches) == 1 else 'ies'}")
        return matches


_default_detector = DuplicateDetector()


def is_duplicate(a: CatalogEntry, b: CatalogEntry) -> bool:
    """Module-level form of DuplicateDetector.is_duplicate with default threshold."""
    return _default_detector.is_duplicate(a, b)


def find_duplicates(entries: Sequence[CatalogEntry]) -> list[DuplicateGroup]:
    """Module-level form of DuplicateDetector.find_duplicates with default threshold."""
    return _default_detector.find_duplicates(entries)
