"""
ISBN Validator for ShelfScan

Pure checksum arithmetic for scanned identifiers:
- Normalization of raw scanner / OCR strings
- ISBN-10 and ISBN-13 checksum validation
- Bookland (978/979) prefix detection
- Tier classification used by the candidate ranker
- Extraction of an ISBN from free-form text
- ISBN-10 <-> ISBN-13 conversion and display formatting

No state, no I/O. Invalid input is never an error here: it is reported as
``False``, ``None`` or ``IdentifierTier.UNCLASSIFIED``.
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional

from loguru import logger


BOOKLAND_PREFIXES = ("978", "979")

# Label printed in front of the digits on copyright pages and back covers
_ISBN_LABEL = re.compile(r"ISBN(?:[-\s]?1[03](?!\d))?", re.IGNORECASE)

# Digit groups; an X may only close a group, alone or attached
_DIGIT_GROUP = re.compile(r"\d+[Xx]?|(?<![A-Za-z0-9])[Xx](?![A-Za-z0-9])")

# What may sit between two groups of the same identifier
_GROUP_SEPARATOR = re.compile(r"^[\s\-‐-―]{1,3}$")


class IdentifierTier(IntEnum):
    """
    Priority class of a normalized identifier.

    Higher value = more trustworthy. Assignment is a pure function of the
    normalized string.
    """
    UNCLASSIFIED = 0
    OTHER_ISBN13 = 1
    ISBN10 = 2
    BOOK_ISBN13 = 3


@dataclass(frozen=True)
class NormalizedIdentifier:
    """A normalized identifier with its length class and tier."""

    value: str
    tier: IdentifierTier

    @property
    def length_class(self) -> Optional[int]:
        """10 or 13 for ISBN-shaped strings, None otherwise."""
        if len(self.value) in (10, 13):
            return len(self.value)
        return None

    @property
    def is_valid(self) -> bool:
        return self.tier != IdentifierTier.UNCLASSIFIED

    @property
    def is_book(self) -> bool:
        return self.tier in (IdentifierTier.BOOK_ISBN13, IdentifierTier.ISBN10)


def normalize(raw: str) -> str:
    """
    Normalize a raw scanned string.

    Strips whitespace, hyphens and anything else that is not a digit. An
    ``X`` survives only as the final character (ISBN-10 check value).

    Args:
        raw: Raw scanner or OCR string

    Returns:
        Digits with an optional trailing X; possibly empty
    """
    if not raw:
        return ""

    kept = re.sub(r"[^0-9X]", "", raw.upper())
    if not kept:
        return ""

    # Interior X characters are noise
    return kept[:-1].replace("X", "") + kept[-1]


def is_valid_isbn10(s: str) -> bool:
    """
    Validate an ISBN-10 checksum.

    Exactly 10 characters, first 9 numeric, last a digit or X (=10).
    Sum of digit_i * (10 - i) must be divisible by 11.
    """
    if not s or len(s) != 10:
        return False

    body, check = s[:9], s[9]
    if not body.isdigit() or not (check.isdigit() or check == "X"):
        return False

    total = sum(int(c) * (10 - i) for i, c in enumerate(body))
    total += 10 if check == "X" else int(check)

    return total % 11 == 0


def is_valid_isbn13(s: str) -> bool:
    """
    Validate an ISBN-13 (EAN-13) checksum.

    Exactly 13 numeric digits, alternating weights 1 and 3, sum divisible
    by 10.
    """
    if not s or len(s) != 13 or not s.isdigit():
        return False

    total = sum(
        int(c) * (1 if i % 2 == 0 else 3)
        for i, c in enumerate(s)
    )
    return total % 10 == 0


def is_book_isbn13(s: str) -> bool:
    """Valid ISBN-13 carrying the Bookland 978/979 prefix."""
    return is_valid_isbn13(s) and s.startswith(BOOKLAND_PREFIXES)


def classify(s: str) -> IdentifierTier:
    """Assign the priority tier of an already-normalized string."""
    if is_book_isbn13(s):
        return IdentifierTier.BOOK_ISBN13
    if is_valid_isbn10(s):
        return IdentifierTier.ISBN10
    if is_valid_isbn13(s):
        return IdentifierTier.OTHER_ISBN13
    return IdentifierTier.UNCLASSIFIED


def identify(raw: str) -> NormalizedIdentifier:
    """Normalize and classify a raw string in one step."""
    value = normalize(raw)
    return NormalizedIdentifier(value=value, tier=classify(value))


def _candidate_runs(text: str) -> Iterator[str]:
    """
    Yield normalized 10- and 13-character windows in order of appearance.

    Digit groups separated only by hyphens or spaces are chained; every
    contiguous sub-chain whose normalized length is 10 or 13 is a
    candidate. An X-terminated group closes its chain.
    """
    chain: list[str] = []
    previous_end = None

    def windows(groups: list[str]) -> Iterator[str]:
        for start in range(len(groups)):
            digits = ""
            for group in groups[start:]:
                digits += group
                if len(digits) > 13:
                    break
                if len(digits) in (10, 13):
                    yield normalize(digits)

    for match in _DIGIT_GROUP.finditer(text):
        gap = text[previous_end:match.start()] if previous_end is not None else None
        if chain and (gap is None or not _GROUP_SEPARATOR.match(gap)):
            yield from windows(chain)
            chain = []

        chain.append(match.group())
        previous_end = match.end()

        if match.group()[-1] in "Xx":
            yield from windows(chain)
            chain = []
            previous_end = None

    if chain:
        yield from windows(chain)


def extract_from_text(
    text: str,
    require_book_prefix_context: bool = False,
) -> Optional[str]:
    """
    Extract the first valid ISBN from free-form text.

    Scans digit runs of length 10 or 13 (hyphens and spaces tolerated).
    With ``require_book_prefix_context`` only Bookland ISBN-13s are
    accepted; otherwise any valid ISBN-13 and valid ISBN-10 qualify.

    Args:
        text: OCR line, label or any printed text
        require_book_prefix_context: Accept only 978/979 ISBN-13s

    Returns:
        Normalized ISBN, or None when nothing validates
    """
    if not text:
        return None

    # Drop "ISBN-13" style labels so their digits never join a run
    cleaned = _ISBN_LABEL.sub(" ", text)

    for run in _candidate_runs(cleaned):
        if len(run) == 13:
            if is_book_isbn13(run):
                return run
            if is_valid_isbn13(run) and not require_book_prefix_context:
                return run
        elif len(run) == 10:
            if is_valid_isbn10(run) and not require_book_prefix_context:
                return run
        logger.debug(f"Rejected ISBN-shaped run '{run}'")

    return None


def isbn10_to_isbn13(isbn10: str) -> Optional[str]:
    """Convert a valid ISBN-10 into its 978-prefixed ISBN-13."""
    isbn10 = normalize(isbn10)
    if not is_valid_isbn10(isbn10):
        return None

    prefix = "978" + isbn10[:-1]
    total = sum(
        int(d) * (1 if i % 2 == 0 else 3)
        for i, d in enumerate(prefix)
    )
    check = (10 - (total % 10)) % 10

    return prefix + str(check)


def isbn13_to_isbn10(isbn13: str) -> Optional[str]:
    """Convert a valid 978-prefixed ISBN-13 into its ISBN-10."""
    isbn13 = normalize(isbn13)
    if not is_valid_isbn13(isbn13) or not isbn13.startswith("978"):
        return None

    body = isbn13[3:-1]
    total = sum(int(d) * (10 - i) for i, d in enumerate(body))
    check = (11 - (total % 11)) % 11

    return body + ("X" if check == 10 else str(check))


def format_isbn(s: str) -> str:
    """
    Hyphenate an ISBN for display.

    Fixed group widths (no registration-group lookup):
    ISBN-13 as 3-1-6-2-1, ISBN-10 as 1-6-2-1.
    """
    value = normalize(s)

    if len(value) == 13:
        return f"{value[:3]}-{value[3]}-{value[4:10]}-{value[10:12]}-{value[12]}"
    if len(value) == 10:
        return f"{value[0]}-{value[1:7]}-{value[7:9]}-{value[9]}"

    return value
