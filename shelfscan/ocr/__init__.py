"""
OCR Text Module

Cleanup of recognized text before ISBN extraction:
- Unicode and whitespace normalization
- Digit confusion correction
- ISBN context detection
"""

from shelfscan.ocr.text_normalizer import TextNormalizer, NormalizationResult

__all__ = [
    "TextNormalizer",
    "NormalizationResult",
]
