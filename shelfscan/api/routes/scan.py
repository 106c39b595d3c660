"""
Scan Session API Routes

Lifecycle of scan sessions driven by a remote capture client: open a
session, push decoded frames, read the single emitted identifier, report
capture failures and dismiss.
"""

from fastapi import APIRouter, Depends, status

from shelfscan.api.dependencies import get_session_registry
from shelfscan.api.middleware import NotFoundError
from shelfscan.api.schemas import (
    CaptureFailureResponse,
    CaptureFailureSchema,
    FrameRequest,
    FrameResponse,
    ScanSessionCreate,
    ScanSessionResponse,
)
from shelfscan.scanning.registry import SessionRegistry
from shelfscan.scanning.session import Frame, ScanSessionController


router = APIRouter(prefix="/scan/sessions", tags=["scan"])


def _to_response(controller: ScanSessionController) -> ScanSessionResponse:
    emission = controller.emission
    failure = controller.failure
    return ScanSessionResponse(
        session_id=controller.session_id,
        mode=controller.mode,
        phase=controller.phase,
        locked=controller.locked,
        emitted_identifier=emission.identifier if emission else None,
        failure=CaptureFailureSchema(kind=failure.kind, message=failure.message) if failure else None,
        frames_processed=controller.frames_processed,
        frames_dropped=controller.frames_dropped,
    )


def _get_or_404(registry: SessionRegistry, session_id: str) -> ScanSessionController:
    controller = registry.get(session_id)
    if controller is None:
        raise NotFoundError("Scan session", session_id)
    return controller


@router.post("", response_model=ScanSessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    request: ScanSessionCreate,
    registry: SessionRegistry = Depends(get_session_registry),
) -> ScanSessionResponse:
    """Open and start a scan session."""
    controller = registry.create(mode=request.mode)
    return _to_response(controller)


@router.get("/{session_id}", response_model=ScanSessionResponse)
def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> ScanSessionResponse:
    """Current phase and emission of a session."""
    return _to_response(_get_or_404(registry, session_id))


@router.post("/{session_id}/frames", response_model=FrameResponse)
def submit_frame(
    session_id: str,
    request: FrameRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> FrameResponse:
    """Push one frame's decoded candidates into the session."""
    controller = _get_or_404(registry, session_id)

    disposition = controller.submit_frame(Frame(
        candidates=[c.to_candidate() for c in request.candidates],
        timestamp=request.timestamp,
    ))
    emission = controller.emission

    return FrameResponse(
        disposition=disposition,
        emitted_identifier=emission.identifier if emission else None,
        session=_to_response(controller),
    )


@router.post("/{session_id}/failure", response_model=CaptureFailureResponse)
def report_failure(
    session_id: str,
    request: CaptureFailureSchema,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CaptureFailureResponse:
    """Record a capture or permission failure (first report wins)."""
    controller = _get_or_404(registry, session_id)
    delivered = controller.report_capture_failure(request.kind, request.message)
    return CaptureFailureResponse(delivered=delivered, session=_to_response(controller))


@router.post("/{session_id}/start", response_model=ScanSessionResponse)
def start_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> ScanSessionResponse:
    """Start a fresh scan in an existing session (clears any previous emission)."""
    controller = _get_or_404(registry, session_id)
    controller.restart()
    return _to_response(controller)


@router.post("/{session_id}/reset", response_model=ScanSessionResponse)
def reset_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> ScanSessionResponse:
    """Return the session to IDLE."""
    controller = _get_or_404(registry, session_id)
    controller.reset()
    return _to_response(controller)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def dismiss_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> None:
    """Dismiss and forget a session."""
    if not registry.remove(session_id):
        raise NotFoundError("Scan session", session_id)
