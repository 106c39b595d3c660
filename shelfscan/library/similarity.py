"""
String similarity for catalog comparison.

Edit-distance based, normalized to [0, 1].
"""

import Levenshtein


def levenshtein_distance(s1: str, s2: str) -> int:
    """Minimum single-character insertions, deletions and substitutions."""
    return Levenshtein.distance(s1, s2)


def normalized_similarity(s1: str, s2: str) -> float:
    """
    Edit-distance similarity between two strings.

    Case-folded and trimmed first. Two empty strings are identical (1.0);
    exactly one empty string scores 0.0. Otherwise
    ``(max_len - distance) / max_len``.

    Symmetric and bounded in [0, 1].
    """
    a = (s1 or "").strip().casefold()
    b = (s2 or "").strip().casefold()

    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0

    longest = max(len(a), len(b))
    return (longest - levenshtein_distance(a, b)) / longest
