"""
ShelfScan - FastAPI Backend.

HTTP surface over the identification and deduplication core.
"""

from .main import create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_service_container,
    ServiceContainer,
)
from .schemas import (
    ISBNValidateRequest,
    ISBNValidateResponse,
    PrioritizeRequest,
    PrioritizeResponse,
    ScanSessionResponse,
    FrameRequest,
    FrameResponse,
    DuplicateScanRequest,
    DuplicateScanResponse,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    # Application
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_service_container",
    "ServiceContainer",
    # Schemas
    "ISBNValidateRequest",
    "ISBNValidateResponse",
    "PrioritizeRequest",
    "PrioritizeResponse",
    "ScanSessionResponse",
    "FrameRequest",
    "FrameResponse",
    "DuplicateScanRequest",
    "DuplicateScanResponse",
    "HealthResponse",
    "ErrorResponse",
]
