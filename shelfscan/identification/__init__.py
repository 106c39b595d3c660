"""
Book Identification Module

Turns raw scanner and OCR output into a single trustworthy ISBN.
"""

from shelfscan.identification.isbn_validator import (
    IdentifierTier,
    NormalizedIdentifier,
    normalize,
    is_valid_isbn10,
    is_valid_isbn13,
    is_book_isbn13,
    classify,
    identify,
    extract_from_text,
    isbn10_to_isbn13,
    isbn13_to_isbn10,
    format_isbn,
)
from shelfscan.identification.candidate_ranker import (
    CandidateRanker,
    RankingResult,
    RankedCandidate,
    RawCandidate,
    SourceType,
    ScanMode,
    PriorityBucket,
)

__all__ = [
    # Validator
    "IdentifierTier",
    "NormalizedIdentifier",
    "normalize",
    "is_valid_isbn10",
    "is_valid_isbn13",
    "is_book_isbn13",
    "classify",
    "identify",
    "extract_from_text",
    "isbn10_to_isbn13",
    "isbn13_to_isbn10",
    "format_isbn",
    # Ranking
    "CandidateRanker",
    "RankingResult",
    "RankedCandidate",
    "RawCandidate",
    "SourceType",
    "ScanMode",
    "PriorityBucket",
]
