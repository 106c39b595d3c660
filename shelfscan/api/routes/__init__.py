"""
API Routes for ShelfScan

Route modules:
- isbn: Identifier validation, extraction and prioritization
- scan: Scan session lifecycle
- duplicates: Catalog duplicate detection
"""

from shelfscan.api.routes.isbn import router as isbn_router
from shelfscan.api.routes.scan import router as scan_router
from shelfscan.api.routes.duplicates import router as duplicates_router

__all__ = [
    "isbn_router",
    "scan_router",
    "duplicates_router",
]
