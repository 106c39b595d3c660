"""
Scanning Module

Session control for continuous camera scanning:
- Frame throttling
- At-most-once identifier emission
- Session registry for the service layer
"""

from shelfscan.scanning.session import (
    ScanSessionController,
    ScanPhase,
    Frame,
    FrameDisposition,
    ScanEmission,
    CaptureFailure,
    CaptureFailureKind,
)
from shelfscan.scanning.registry import (
    SessionRegistry,
    SessionLimitError,
)

__all__ = [
    # Session
    "ScanSessionController",
    "ScanPhase",
    "Frame",
    "FrameDisposition",
    "ScanEmission",
    "CaptureFailure",
    "CaptureFailureKind",
    # Registry
    "SessionRegistry",
    "SessionLimitError",
]
