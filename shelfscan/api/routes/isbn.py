"""
ISBN API Routes

Stateless identifier operations: validation, extraction from text and
prioritization of a frame's candidates.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from shelfscan.api.dependencies import get_candidate_ranker
from shelfscan.api.schemas import (
    ISBNExtractRequest,
    ISBNExtractResponse,
    ISBNValidateRequest,
    ISBNValidateResponse,
    PrioritizeRequest,
    PrioritizeResponse,
)
from shelfscan.identification.candidate_ranker import CandidateRanker
from shelfscan.identification.isbn_validator import (
    classify,
    extract_from_text,
    format_isbn,
    is_book_isbn13,
    is_valid_isbn10,
    is_valid_isbn13,
    isbn10_to_isbn13,
    isbn13_to_isbn10,
    normalize,
)


router = APIRouter(prefix="/isbn", tags=["isbn"])


@router.post("/validate", response_model=ISBNValidateResponse)
def validate_isbn(request: ISBNValidateRequest) -> ISBNValidateResponse:
    """Normalize, classify and convert a single identifier."""
    value = normalize(request.isbn)
    valid13 = is_valid_isbn13(value)
    valid10 = is_valid_isbn10(value)

    if valid13:
        isbn_13, isbn_10 = value, isbn13_to_isbn10(value)
    elif valid10:
        isbn_13, isbn_10 = isbn10_to_isbn13(value), value
    else:
        isbn_13, isbn_10 = None, None

    return ISBNValidateResponse(
        input=request.isbn,
        normalized=value,
        tier=classify(value).name,
        is_valid_isbn10=valid10,
        is_valid_isbn13=valid13,
        is_book_isbn13=is_book_isbn13(value),
        isbn_13=isbn_13,
        isbn_10=isbn_10,
        formatted=format_isbn(value),
    )


@router.post("/extract", response_model=ISBNExtractResponse)
def extract_isbn(request: ISBNExtractRequest) -> ISBNExtractResponse:
    """Find the first valid ISBN in free-form text."""
    return ISBNExtractResponse(
        isbn=extract_from_text(request.text, request.require_book_prefix_context),
    )


@router.post("/prioritize", response_model=PrioritizeResponse)
def prioritize_candidates(
    request: PrioritizeRequest,
    ranker: CandidateRanker = Depends(get_candidate_ranker),
) -> PrioritizeResponse:
    """Select the single best identifier from one frame's candidates."""
    result = ranker.rank(
        [c.to_candidate() for c in request.candidates],
        mode=request.mode,
    )
    best = result.best_match

    if best is not None:
        logger.info(f"Prioritized '{best.value}' from {result.total_considered} candidate(s)")

    return PrioritizeResponse(
        mode=result.mode,
        identifier=best.value if best else None,
        tier=best.tier.name if best else None,
        bucket=best.bucket.value if best else None,
        index=best.index if best else None,
        total_considered=result.total_considered,
        had_isbn_context=result.had_isbn_context,
    )
