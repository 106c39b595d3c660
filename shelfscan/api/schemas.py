"""
API Schemas for ShelfScan

Pydantic models for request validation and response serialization:
- ISBN validation and extraction
- Candidate prioritization
- Scan sessions
- Duplicate detection

Design Decisions:
1. Separate Request/Response: Clear distinction between inputs and outputs
2. Optional fields: author, isbn and confidence are genuinely optional
3. Examples: OpenAPI documentation with realistic examples
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shelfscan.identification.candidate_ranker import RawCandidate, ScanMode, SourceType
from shelfscan.library.duplicates import CatalogEntry
from shelfscan.scanning.session import CaptureFailureKind, FrameDisposition, ScanPhase


# =============================================================================
# ISBN Schemas
# =============================================================================

class ISBNValidateRequest(BaseModel):
    """Validate a single identifier."""

    isbn: str = Field(..., max_length=64)

    model_config = ConfigDict(
        json_schema_extra={"example": {"isbn": "978-0-14-143951-8"}}
    )


class ISBNValidateResponse(BaseModel):
    """Validation outcome."""

    input: str
    normalized: str
    tier: str
    is_valid_isbn10: bool
    is_valid_isbn13: bool
    is_book_isbn13: bool
    isbn_13: Optional[str] = None
    isbn_10: Optional[str] = None
    formatted: str


class ISBNExtractRequest(BaseModel):
    """Extract an ISBN from free text."""

    text: str = Field(..., max_length=10000)
    require_book_prefix_context: bool = False


class ISBNExtractResponse(BaseModel):
    isbn: Optional[str] = None


class CandidateSchema(BaseModel):
    """One raw candidate detected in a frame."""

    text: str = Field(..., max_length=4096)
    source_type: SourceType
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)

    def to_candidate(self) -> RawCandidate:
        return RawCandidate(
            text=self.text,
            source_type=self.source_type,
            confidence=self.confidence,
        )


class PrioritizeRequest(BaseModel):
    """Candidates detected together in one frame."""

    candidates: list[CandidateSchema] = Field(default_factory=list)
    mode: Optional[ScanMode] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "mode": "barcode",
                "candidates": [
                    {"text": "012345678905", "source_type": "linear_barcode_13"},
                    {"text": "9780141439518", "source_type": "linear_barcode_13"},
                ],
            }
        }
    )


class PrioritizeResponse(BaseModel):
    """Selected identifier, if any."""

    mode: ScanMode
    identifier: Optional[str] = None
    tier: Optional[str] = None
    bucket: Optional[int] = None
    index: Optional[int] = None
    total_considered: int = 0
    had_isbn_context: bool = True


# =============================================================================
# Scan Session Schemas
# =============================================================================

class ScanSessionCreate(BaseModel):
    mode: ScanMode = ScanMode.BARCODE


class CaptureFailureSchema(BaseModel):
    kind: CaptureFailureKind
    message: str = ""


class ScanSessionResponse(BaseModel):
    """Current state of a scan session."""

    session_id: str
    mode: ScanMode
    phase: ScanPhase
    locked: bool
    emitted_identifier: Optional[str] = None
    failure: Optional[CaptureFailureSchema] = None
    frames_processed: int = 0
    frames_dropped: int = 0


class FrameRequest(BaseModel):
    """Decoded strings from one capture frame."""

    candidates: list[CandidateSchema] = Field(default_factory=list)
    timestamp: Optional[float] = None


class FrameResponse(BaseModel):
    disposition: FrameDisposition
    emitted_identifier: Optional[str] = None
    session: ScanSessionResponse


class CaptureFailureResponse(BaseModel):
    delivered: bool
    session: ScanSessionResponse


# =============================================================================
# Duplicate Detection Schemas
# =============================================================================

class CatalogEntrySchema(BaseModel):
    """Catalog entry as supplied by the persistence layer."""

    id: str = Field(..., min_length=1)
    title: str = ""
    author: Optional[str] = None
    isbn: Optional[str] = None

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(id=self.id, title=self.title, author=self.author, isbn=self.isbn)

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "CatalogEntrySchema":
        return cls(id=entry.id, title=entry.title, author=entry.author, isbn=entry.isbn)


class DuplicateScanRequest(BaseModel):
    entries: list[CatalogEntrySchema] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "entries": [
                    {"id": "1", "title": "Dune", "author": "Frank Herbert", "isbn": "9780441172719"},
                    {"id": "2", "title": "Dune ", "author": "Frank Herbert"},
                    {"id": "3", "title": "1984", "author": "George Orwell"},
                ]
            }
        }
    )


class DuplicateGroupSchema(BaseModel):
    ids: list[str]
    entries: list[CatalogEntrySchema]


class DuplicateScanResponse(BaseModel):
    groups: list[DuplicateGroupSchema] = Field(default_factory=list)
    total_entries: int = 0
    duplicate_entries: int = 0


class DuplicateCheckRequest(BaseModel):
    """Save-time check of one entry against the catalog."""

    entry: CatalogEntrySchema
    entries: list[CatalogEntrySchema] = Field(default_factory=list)


class DuplicateCheckResponse(BaseModel):
    is_duplicate: bool
    matches: list[CatalogEntrySchema] = Field(default_factory=list)


class DuplicateResolveRequest(BaseModel):
    """Keep one member of a duplicate group, delete the rest."""

    group_ids: list[str] = Field(..., min_length=2)
    keep_id: str


class DuplicateResolveResponse(BaseModel):
    keep_id: str
    remove_ids: list[str]


# =============================================================================
# System Schemas
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime
