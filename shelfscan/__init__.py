"""
ShelfScan - book identification and deduplication core.

- identification: ISBN validation and candidate ranking
- ocr: recognized-text cleanup
- scanning: scan session state machine
- library: duplicate detection
- api: FastAPI service
"""

__version__ = "1.0.0"
