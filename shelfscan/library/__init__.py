"""
Library Module

Whole-catalog analysis:
- Edit-distance similarity
- Duplicate detection and save-time duplicate checks
"""

from shelfscan.library.similarity import (
    levenshtein_distance,
    normalized_similarity,
)
from shelfscan.library.duplicates import (
    CatalogEntry,
    DuplicateGroup,
    DuplicateDetector,
    find_duplicates,
    is_duplicate,
)

__all__ = [
    # Similarity
    "levenshtein_distance",
    "normalized_similarity",
    # Duplicates
    "CatalogEntry",
    "DuplicateGroup",
    "DuplicateDetector",
    "find_duplicates",
    "is_duplicate",
]
