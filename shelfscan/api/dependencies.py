"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Service instances (ranker, duplicate detector, session registry)
"""

import os
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Request

from shelfscan.identification.candidate_ranker import CandidateRanker
from shelfscan.library.duplicates import DuplicateDetector
from shelfscan.ocr.text_normalizer import TextNormalizer
from shelfscan.scanning.registry import SessionRegistry


# =============================================================================
# Configuration
# =============================================================================

def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Scanning
    min_frame_interval_ms: int = 200
    text_min_confidence: float = 0.5
    ocr_digit_correction: bool = False

    # Sessions
    session_ttl_minutes: int = 30
    max_sessions: int = 256

    # Duplicate detection
    similarity_threshold: float = 0.8

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            min_frame_interval_ms=int(os.getenv("SHELFSCAN_MIN_FRAME_INTERVAL_MS", cls.min_frame_interval_ms)),
            text_min_confidence=float(os.getenv("SHELFSCAN_TEXT_MIN_CONFIDENCE", cls.text_min_confidence)),
            ocr_digit_correction=_env_bool("SHELFSCAN_OCR_DIGIT_CORRECTION", "false"),
            session_ttl_minutes=int(os.getenv("SHELFSCAN_SESSION_TTL_MINUTES", cls.session_ttl_minutes)),
            max_sessions=int(os.getenv("SHELFSCAN_MAX_SESSIONS", cls.max_sessions)),
            similarity_threshold=float(os.getenv("SHELFSCAN_SIMILARITY_THRESHOLD", cls.similarity_threshold)),
            environment=os.getenv("SHELFSCAN_ENV", cls.environment),
            debug=_env_bool("DEBUG", "true"),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Dependencies (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    Services are initialized on first access. The session registry holds
    shared state, so its creation is serialized.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._candidate_ranker = None
        self._duplicate_detector = None
        self._session_registry = None
        self._registry_lock = threading.Lock()

    def build_ranker(self) -> CandidateRanker:
        """Fresh ranker configured from settings."""
        return CandidateRanker(
            min_text_confidence=self.settings.text_min_confidence,
            text_normalizer=TextNormalizer(
                fix_digit_confusions=self.settings.ocr_digit_correction,
            ),
        )

    @property
    def candidate_ranker(self) -> CandidateRanker:
        """Get shared (stateless) candidate ranker."""
        if self._candidate_ranker is None:
            self._candidate_ranker = self.build_ranker()
        return self._candidate_ranker

    @property
    def duplicate_detector(self) -> DuplicateDetector:
        """Get duplicate detector instance."""
        if self._duplicate_detector is None:
            self._duplicate_detector = DuplicateDetector(
                similarity_threshold=self.settings.similarity_threshold,
            )
        return self._duplicate_detector

    @property
    def session_registry(self) -> SessionRegistry:
        """Get scan session registry."""
        if self._session_registry is None:
            with self._registry_lock:
                if self._session_registry is None:
                    self._session_registry = SessionRegistry(
                        ranker_factory=self.build_ranker,
                        min_frame_interval=self.settings.min_frame_interval_ms / 1000.0,
                        ttl_seconds=self.settings.session_ttl_minutes * 60,
                        max_sessions=self.settings.max_sessions,
                    )
        return self._session_registry

    def shutdown(self) -> None:
        """Release session state."""
        if self._session_registry is not None:
            self._session_registry.clear()


def init_services(settings: Optional[Settings] = None) -> ServiceContainer:
    """Create the service container."""
    return ServiceContainer(settings or get_settings())


def get_service_container(request: Request) -> ServiceContainer:
    """Service container stored on the application."""
    return request.app.state.services


def get_candidate_ranker(request: Request) -> CandidateRanker:
    return get_service_container(request).candidate_ranker


def get_duplicate_detector(request: Request) -> DuplicateDetector:
    return get_service_container(request).duplicate_detector


def get_session_registry(request: Request) -> SessionRegistry:
    return get_service_container(request).session_registry
