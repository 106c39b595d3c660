"""
Candidate Ranker for ShelfScan

Selection of a single identifier from everything detected in one frame:
- Normalization and tier classification of every raw candidate
- Strict priority buckets (symbology reliability + tier)
- Stable, input-order tie breaking
- Optical-text gating ("ISBN" context, minimum confidence)

Design Decisions:
1. Symbology encodes reliability: a 13-digit linear barcode carrying a
   Bookland ISBN beats the same tier from any other source
2. Confidence never breaks ties; it is optional and only gates text
3. Optical text is gated per observation in every mode and never falls
   back; decoded barcodes keep a last-resort fallback in barcode mode only
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from loguru import logger

from shelfscan.identification.isbn_validator import (
    IdentifierTier,
    NormalizedIdentifier,
    classify,
    extract_from_text,
    normalize,
)
from shelfscan.ocr.text_normalizer import TextNormalizer


class SourceType(str, Enum):
    """Symbology / recognition source of a raw candidate."""
    LINEAR_BARCODE_13 = "linear_barcode_13"
    LINEAR_BARCODE_8 = "linear_barcode_8"
    OTHER_SYMBOLOGY = "other_symbology"
    OPTICAL_TEXT = "optical_text"


class ScanMode(str, Enum):
    """Which capture pipeline produced the frame."""
    BARCODE = "barcode"
    TEXT = "text"


class PriorityBucket(int, Enum):
    """Selection buckets, lowest value wins."""
    BOOK_ISBN13_LINEAR = 1
    BOOK_ISBN13_OTHER = 2
    ISBN10 = 3
    OTHER_ISBN13 = 4
    FALLBACK = 5


@dataclass(frozen=True)
class RawCandidate:
    """One decoded string or text observation from a single frame."""

    text: str
    source_type: SourceType
    confidence: Optional[float] = None  # [0, 1], optical text only in practice


@dataclass
class RankedCandidate:
    """Candidate with its normalized form, tier and bucket."""

    candidate: RawCandidate
    identifier: NormalizedIdentifier
    bucket: PriorityBucket
    index: int  # Position in the frame's detection order

    @property
    def value(self) -> str:
        if self.bucket == PriorityBucket.FALLBACK:
            return self.identifier.value or self.candidate.text.strip()
        return self.identifier.value

    @property
    def tier(self) -> IdentifierTier:
        return self.identifier.tier


@dataclass
class RankingResult:
    """Outcome of ranking one frame."""

    mode: ScanMode
    ranked: list[RankedCandidate] = field(default_factory=list)

    # Diagnostics
    total_considered: int = 0
    rejected_low_confidence: int = 0
    had_isbn_context: bool = True

    @property
    def best_match(self) -> Optional[RankedCandidate]:
        if self.ranked:
            return self.ranked[0]
        return None

    @property
    def identifier(self) -> Optional[str]:
        best = self.best_match
        return best.value if best else None


class CandidateRanker:
    """
    Picks the single best identifier from a frame's candidates.

    Buckets, in strict order:
    1. Bookland ISBN-13 from a 13-digit linear barcode
    2. Bookland ISBN-13 from any other source
    3. Valid ISBN-10
    4. Valid non-book ISBN-13
    5. Anything else (barcode mode only)

    Within a bucket the earliest candidate wins.

    Usage:
        ranker = CandidateRanker()
        result = ranker.rank([
            RawCandidate("012345678905", SourceType.LINEAR_BARCODE_13),
            RawCandidate("9780141439518", SourceType.LINEAR_BARCODE_13),
        ])
        print(result.identifier)  # "9780141439518"
    """

    MIN_TEXT_CONFIDENCE = 0.5

    def __init__(
        self,
        min_text_confidence: float = MIN_TEXT_CONFIDENCE,
        text_normalizer: Optional[TextNormalizer] = None,
    ):
        """
        Initialize ranker.

        Args:
            min_text_confidence: Text observations below this are ignored
            text_normalizer: Cleanup applied to optical text before extraction
        """
        self.min_text_confidence = min_text_confidence
        self.text_normalizer = text_normalizer or TextNormalizer()

    def rank(
        self,
        candidates: Sequence[RawCandidate],
        mode: Optional[ScanMode] = None,
    ) -> RankingResult:
        """
        Rank one frame's candidates.

        Optical text observations are always gated by the text rules
        ("ISBN" context, minimum confidence, validated identifiers only),
        whatever the mode. Decoded barcodes reach the fallback bucket only
        in barcode mode.

        Args:
            candidates: Raw candidates in detection order
            mode: Pipeline; inferred from the source types when omitted

        Returns:
            RankingResult; ``identifier`` is None when nothing qualifies
        """
        if mode is None:
            mode = self._infer_mode(candidates)

        if not candidates:
            return RankingResult(mode=mode)

        ranked = []
        observations = []
        for index, candidate in enumerate(candidates):
            if candidate.source_type == SourceType.OPTICAL_TEXT:
                observations.append((index, candidate))
                continue

            value = normalize(candidate.text)
            identifier = NormalizedIdentifier(value=value, tier=classify(value))
            bucket = self._bucket_for(identifier.tier, candidate.source_type)

            if bucket == PriorityBucket.FALLBACK:
                if mode != ScanMode.BARCODE or not candidate.text.strip():
                    continue

            ranked.append(RankedCandidate(
                candidate=candidate,
                identifier=identifier,
                bucket=bucket,
                index=index,
            ))

        text_ranked, rejected, had_context = self._rank_text(observations)
        ranked.extend(text_ranked)
        ranked.sort(key=lambda r: r.index)

        return RankingResult(
            mode=mode,
            ranked=self._order(ranked),
            total_considered=len(candidates),
            rejected_low_confidence=rejected,
            had_isbn_context=had_context,
        )

    def select(
        self,
        candidates: Sequence[RawCandidate],
        mode: Optional[ScanMode] = None,
    ) -> Optional[str]:
        """Convenience wrapper returning only the winning identifier."""
        return self.rank(candidates, mode).identifier

    def _rank_text(
        self,
        observations: Sequence[tuple[int, RawCandidate]],
    ) -> tuple[list[RankedCandidate], int, bool]:
        """
        Rank optical text observations, keyed by their position in the frame.

        Every observation is discarded unless some observation (whatever its
        confidence) mentions "ISBN". Observations below the confidence
        threshold are never candidates. Only validated identifiers qualify,
        so optical text never lands in the fallback bucket.

        Returns:
            (ranked observations, low-confidence rejections, had ISBN context)
        """
        if not observations:
            return [], 0, True

        texts = [
            self.text_normalizer.normalize(o.text).normalized
            for _, o in observations
        ]

        if not self.text_normalizer.has_isbn_context(texts):
            logger.debug("No ISBN context in frame, skipping text observations")
            return [], 0, False

        ranked = []
        rejected = 0
        for (index, observation), text in zip(observations, texts):
            if observation.confidence is not None and observation.confidence < self.min_text_confidence:
                rejected += 1
                continue

            isbn = extract_from_text(text, require_book_prefix_context=False)
            if isbn is None:
                logger.debug(f"No valid ISBN in text observation '{text}'")
                continue

            tier = classify(isbn)
            ranked.append(RankedCandidate(
                candidate=observation,
                identifier=NormalizedIdentifier(value=isbn, tier=tier),
                bucket=self._bucket_for(tier, observation.source_type),
                index=index,
            ))

        return ranked, rejected, True

    def _bucket_for(self, tier: IdentifierTier, source_type: SourceType) -> PriorityBucket:
        """Map (tier, symbology) to a selection bucket."""
        if tier == IdentifierTier.BOOK_ISBN13:
            if source_type == SourceType.LINEAR_BARCODE_13:
                return PriorityBucket.BOOK_ISBN13_LINEAR
            return PriorityBucket.BOOK_ISBN13_OTHER
        if tier == IdentifierTier.ISBN10:
            return PriorityBucket.ISBN10
        if tier == IdentifierTier.OTHER_ISBN13:
            return PriorityBucket.OTHER_ISBN13
        return PriorityBucket.FALLBACK

    def _order(self, ranked: list[RankedCandidate]) -> list[RankedCandidate]:
        # sort() is stable, so detection order survives inside each bucket
        return sorted(ranked, key=lambda r: r.bucket)

    def _infer_mode(self, candidates: Sequence[RawCandidate]) -> ScanMode:
        if candidates and all(c.source_type == SourceType.OPTICAL_TEXT for c in candidates):
            return ScanMode.TEXT
        return ScanMode.BARCODE

    def explain_ranking(self, result: RankingResult) -> str:
        """
        Generate human-readable ranking explanation.

        Args:
            result: Ranking result

        Returns:
            Explanation string
        """
        lines = [
            f"Mode: {result.mode.value}",
            f"Candidates considered: {result.total_considered}",
            f"ISBN context: {result.had_isbn_context}",
            f"Rejected (low confidence): {result.rejected_low_confidence}",
            "",
        ]

        for position, ranked in enumerate(result.ranked, start=1):
            lines.append(
                f"{position}. {ranked.value} "
                f"[bucket {ranked.bucket.value}, {ranked.tier.name}, "
                f"{ranked.candidate.source_type.value}, input #{ranked.index}]"
            )

        if not result.ranked:
            lines.append("No candidate selected")

        return "\n".join(lines)
