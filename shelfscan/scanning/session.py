"""
Scan Session Controller

State machine over a continuous capture stream:
- Frame throttling (drop, never queue)
- At-most-once emission per session via an indivisible test-and-set
- Clean reset between presentations (no emission leaks across sessions)
- One-shot capture failure reporting
- Per-frame recognition failures swallowed

Phases: IDLE -> ACTIVE -> LOCKED -> EMITTING -> (reset) IDLE.
Frames may be delivered from any number of threads.
"""

import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from loguru import logger

from shelfscan.identification.candidate_ranker import (
    CandidateRanker,
    RankedCandidate,
    RawCandidate,
    ScanMode,
)


class ScanPhase(str, Enum):
    """Lifecycle phase of a scan session."""
    IDLE = "idle"
    ACTIVE = "active"
    LOCKED = "locked"
    EMITTING = "emitting"


class FrameDisposition(str, Enum):
    """What happened to a submitted frame."""
    INACTIVE = "inactive"        # Session not ACTIVE (idle, locked, emitting)
    THROTTLED = "throttled"      # Arrived inside the minimum interval
    NO_CANDIDATE = "no_candidate"
    FAILED = "failed"            # Recognition raised; frame skipped
    DISCARDED = "discarded"      # Lost the lock race or session was reset mid-flight
    EMITTED = "emitted"


class CaptureFailureKind(str, Enum):
    CAPTURE_UNAVAILABLE = "capture_unavailable"
    PERMISSION_DENIED = "permission_denied"


@dataclass(frozen=True)
class Frame:
    """
    One capture event.

    Either ``candidates`` (strings already decoded by the platform) or an
    opaque ``payload`` handed to the session's recognizer.
    """

    candidates: Optional[Sequence[RawCandidate]] = None
    payload: Any = None
    timestamp: Optional[float] = None  # Seconds, same clock as the session


@dataclass(frozen=True)
class ScanEmission:
    """The single identifier emitted by a session."""

    identifier: str
    session_id: str
    generation: int
    ranked: Optional[RankedCandidate] = None
    emitted_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class CaptureFailure:
    """Session-establishment failure reported to the caller once."""

    kind: CaptureFailureKind
    message: str = ""
    session_id: str = ""


Recognizer = Callable[[Any], Sequence[RawCandidate]]
Dispatcher = Callable[[Callable[[], None]], None]


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class ScanSessionController:
    """
    Gatekeeper between the capture stream and the candidate ranker.

    All reads and writes of the lock, phase and throttle timestamp happen
    under one mutex. Emission is decided by a test-and-set inside that
    mutex, so concurrent frame callbacks can never emit twice.

    A generation counter is bumped on every start/reset; work that began
    under an older generation completes as a no-op.

    Usage:
        controller = ScanSessionController(on_emit=lambda e: print(e.identifier))
        controller.start()
        controller.submit_frame(Frame(candidates=[
            RawCandidate("9780141439518", SourceType.LINEAR_BARCODE_13),
        ]))
    """

    MIN_FRAME_INTERVAL = 0.2  # Seconds; at most 5 processed frames per second

    def __init__(
        self,
        ranker: Optional[CandidateRanker] = None,
        mode: ScanMode = ScanMode.BARCODE,
        on_emit: Optional[Callable[[ScanEmission], None]] = None,
        on_failure: Optional[Callable[[CaptureFailure], None]] = None,
        recognizer: Optional[Recognizer] = None,
        dispatch: Optional[Dispatcher] = None,
        min_frame_interval: float = MIN_FRAME_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        session_id: Optional[str] = None,
    ):
        """
        Initialize controller in the IDLE phase.

        Args:
            ranker: Candidate ranker used for every accepted frame
            mode: Barcode or optical text pipeline
            on_emit: Receives the session's single emission
            on_failure: Receives the session's single capture failure
            recognizer: Turns a frame payload into raw candidates
            dispatch: Delivers callbacks to the designated consumer context
            min_frame_interval: Minimum seconds between processed frames
            clock: Monotonic time source for frames without a timestamp
            session_id: Stable identifier (generated when omitted)
        """
        self.ranker = ranker or CandidateRanker()
        self.mode = mode
        self.on_emit = on_emit
        self.on_failure = on_failure
        self.recognizer = recognizer
        self.dispatch = dispatch or _call_now
        self.min_frame_interval = min_frame_interval
        self.clock = clock
        self.session_id = session_id or uuid.uuid4().hex

        self._mutex = threading.Lock()
        self._phase = ScanPhase.IDLE
        self._locked = False
        self._last_frame_at: Optional[float] = None
        self._generation = 0
        self._emission: Optional[ScanEmission] = None
        self._failure: Optional[CaptureFailure] = None

        # Diagnostics
        self.frames_processed = 0
        self.frames_dropped = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> ScanPhase:
        with self._mutex:
            return self._phase

    @property
    def locked(self) -> bool:
        with self._mutex:
            return self._locked

    @property
    def last_frame_timestamp(self) -> Optional[float]:
        with self._mutex:
            return self._last_frame_at

    @property
    def emission(self) -> Optional[ScanEmission]:
        with self._mutex:
            return self._emission

    @property
    def failure(self) -> Optional[CaptureFailure]:
        with self._mutex:
            return self._failure

    @property
    def generation(self) -> int:
        with self._mutex:
            return self._generation

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin a new session: ACTIVE, unlocked, throttle timer cleared."""
        with self._mutex:
            self._generation += 1
            self._phase = ScanPhase.ACTIVE
            self._locked = False
            self._last_frame_at = None
            self._emission = None
            self._failure = None
            generation = self._generation

        logger.info(f"Scan session {self.session_id} started (generation {generation}, mode={self.mode.value})")

    def reset(self) -> None:
        """Tear down the session: IDLE, unlocked. In-flight work becomes a no-op."""
        with self._mutex:
            self._generation += 1
            self._phase = ScanPhase.IDLE
            self._locked = False
            self._last_frame_at = None
            self._emission = None
            self._failure = None

        logger.info(f"Scan session {self.session_id} reset")

    def restart(self) -> None:
        """Reset and immediately start again."""
        self.reset()
        self.start()

    # ------------------------------------------------------------------
    # Frame handling
    # ------------------------------------------------------------------

    def submit_frame(self, frame: Frame) -> FrameDisposition:
        """
        Offer one frame from the capture stream.

        Safe to call concurrently. Never raises for recognition problems or
        for errors in the consumer callbacks; those are logged.

        Args:
            frame: Capture event

        Returns:
            FrameDisposition describing what happened to the frame
        """
        generation = self._accept(frame)
        if isinstance(generation, FrameDisposition):
            return generation

        try:
            candidates = self._recognize(frame)
            result = self.ranker.rank(candidates, self.mode)
        except Exception as e:
            logger.debug(f"Recognition pass failed, skipping frame: {type(e).__name__}: {e}")
            return FrameDisposition.FAILED

        best = result.best_match
        if best is None:
            return FrameDisposition.NO_CANDIDATE

        return self.offer(best.value, generation=generation, ranked=best)

    def offer(
        self,
        identifier: str,
        generation: Optional[int] = None,
        ranked: Optional[RankedCandidate] = None,
    ) -> FrameDisposition:
        """
        Try to claim the session's single emission for ``identifier``.

        Only the caller that flips the lock proceeds; everyone else is
        discarded. ``generation`` pins the attempt to the session it was
        started in.
        """
        with self._mutex:
            if generation is None:
                generation = self._generation

            if generation != self._generation or self._phase != ScanPhase.ACTIVE or self._locked:
                discarded = True
            else:
                self._locked = True
                self._phase = ScanPhase.LOCKED
                emission = ScanEmission(
                    identifier=identifier,
                    session_id=self.session_id,
                    generation=generation,
                    ranked=ranked,
                )
                self._emission = emission
                discarded = False

        if discarded:
            logger.debug(f"Discarded '{identifier}' for session {self.session_id} (already locked or reset)")
            return FrameDisposition.DISCARDED

        logger.info(f"Scan session {self.session_id} locked on '{identifier}'")
        self.dispatch(lambda: self._deliver(emission))
        return FrameDisposition.EMITTED

    def report_capture_failure(
        self,
        kind: CaptureFailureKind,
        message: str = "",
    ) -> bool:
        """
        Report a capture/permission failure.

        Delivered once per session; does not lock the session, which stays
        dismissible through ``reset``.

        Returns:
            True if this report was the one delivered
        """
        with self._mutex:
            if self._failure is not None:
                return False
            failure = CaptureFailure(kind=kind, message=message, session_id=self.session_id)
            self._failure = failure

        logger.warning(f"Scan session {self.session_id} capture failure: {kind.value} {message}".rstrip())
        if self.on_failure is not None:
            self.dispatch(lambda: self._notify_failure(failure))
        return True

    def _accept(self, frame: Frame):
        """Phase check and throttle gate; returns the generation or a disposition."""
        now = frame.timestamp if frame.timestamp is not None else self.clock()

        with self._mutex:
            if self._phase != ScanPhase.ACTIVE or self._locked:
                self.frames_dropped += 1
                return FrameDisposition.INACTIVE

            if self._last_frame_at is not None:
                elapsed = now - self._last_frame_at
                # A clock that ran backwards restarts the interval instead of blocking it
                if 0 <= elapsed < self.min_frame_interval:
                    self.frames_dropped += 1
                    return FrameDisposition.THROTTLED

            self._last_frame_at = now
            self.frames_processed += 1
            return self._generation

    def _recognize(self, frame: Frame) -> Sequence[RawCandidate]:
        if frame.candidates is not None:
            return frame.candidates
        if self.recognizer is None:
            return []
        return self.recognizer(frame.payload)

    def _deliver(self, emission: ScanEmission) -> None:
        """Hand the emission to the consumer unless the session was torn down."""
        with self._mutex:
            if emission.generation != self._generation:
                logger.debug(f"Session {self.session_id} reset before delivery, dropping emission")
                return
            self._phase = ScanPhase.EMITTING

        if self.on_emit is not None:
            try:
                self.on_emit(emission)
            except Exception as e:
                logger.opt(exception=e).error(f"Emission callback failed for session {self.session_id}")

    def _notify_failure(self, failure: CaptureFailure) -> None:
        try:
            self.on_failure(failure)
        except Exception as e:
            logger.opt(exception=e).error(f"Failure callback failed for session {self.session_id}")
