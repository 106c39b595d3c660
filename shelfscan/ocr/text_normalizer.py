"""
Text Normalizer for ShelfScan

Pre-processing of optical text observations before ISBN extraction:
- Unicode normalization (full-width digits, ligatures)
- Control character and whitespace cleanup
- Digit confusion correction inside ISBN-like runs
- "ISBN" context detection across a frame
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable

from loguru import logger


@dataclass
class NormalizationResult:
    """Result of text normalization."""
    original: str
    normalized: str
    corrections: list[tuple[str, str]] = field(default_factory=list)  # (original, corrected) pairs

    @property
    def was_modified(self) -> bool:
        return self.original != self.normalized


class TextNormalizer:
    """
    Text cleanup for recognized text lines.

    Recognition engines commonly confuse a handful of glyphs inside long
    digit strings printed under barcodes:
    - O / o read for 0
    - I / l read for 1
    - ':' read for 8

    Correction only touches runs that are already digit-dominated, so words
    such as the "ISBN" label itself are left alone.

    Usage:
        normalizer = TextNormalizer(fix_digit_confusions=True)
        result = normalizer.normalize("ISBN 978-O-14-143951-8")
        print(result.normalized)  # "ISBN 978-0-14-143951-8"
    """

    DIGIT_CONFUSIONS = {
        'O': '0',
        'o': '0',
        'I': '1',
        'l': '1',
        ':': '8',
    }

    # Long enough to hold an ISBN with separators, bounded by non-letters
    ISBN_LIKE_RUN = re.compile(r"(?<![A-Za-z])[0-9IlOo:][0-9IlOo:\- ]{8,20}[0-9IlOo:Xx](?![A-Za-z])")

    # A run must already be mostly digits before it is corrected
    MIN_DIGIT_SHARE = 0.7

    CONTEXT_MARKER = "ISBN"

    def __init__(self, fix_unicode: bool = True, fix_digit_confusions: bool = False):
        """
        Initialize the text normalizer.

        Args:
            fix_unicode: Apply NFKC normalization
            fix_digit_confusions: Correct O/I/l/: confusions inside ISBN-like runs
        """
        self.fix_unicode = fix_unicode
        self.fix_digit_confusions = fix_digit_confusions

    def normalize(self, text: str) -> NormalizationResult:
        """
        Normalize a recognized text line.

        Args:
            text: Raw recognized text

        Returns:
            NormalizationResult with normalized text and applied corrections
        """
        if not text:
            return NormalizationResult(original="", normalized="")

        original = text
        corrections = []

        if self.fix_unicode:
            text = self._normalize_unicode(text)

        text = self._normalize_whitespace(text)

        if self.fix_digit_confusions:
            text, corrections = self.correct_digit_confusions(text)

        return NormalizationResult(
            original=original,
            normalized=text,
            corrections=corrections,
        )

    def _normalize_unicode(self, text: str) -> str:
        """NFKC: full-width digits and compatibility forms become ASCII."""
        return unicodedata.normalize('NFKC', text)

    def _normalize_whitespace(self, text: str) -> str:
        """Control characters to spaces, then collapse runs of whitespace."""
        text = ''.join(
            ' ' if unicodedata.category(c) == 'Cc' else c
            for c in text
        )
        return re.sub(r'\s+', ' ', text).strip()

    def correct_digit_confusions(self, text: str) -> tuple[str, list[tuple[str, str]]]:
        """
        Replace glyph confusions inside digit-dominated runs.

        Returns:
            (corrected text, list of (run, corrected run) pairs)
        """
        corrections = []

        def fix(match: re.Match) -> str:
            run = match.group()
            significant = [c for c in run if c not in "- "]
            digits = sum(c.isdigit() for c in significant)
            if not significant or digits / len(significant) < self.MIN_DIGIT_SHARE:
                return run

            fixed = ''.join(self.DIGIT_CONFUSIONS.get(c, c) for c in run)
            if fixed != run:
                corrections.append((run, fixed))
            return fixed

        corrected = self.ISBN_LIKE_RUN.sub(fix, text)
        if corrections:
            logger.debug(f"Corrected {len(corrections)} digit confusion run(s): {corrections}")

        return corrected, corrections

    def has_isbn_context(self, texts: Iterable[str]) -> bool:
        """True if any observation mentions "ISBN" (case-insensitive)."""
        marker = self.CONTEXT_MARKER.lower()
        return any(marker in (text or "").lower() for text in texts)
