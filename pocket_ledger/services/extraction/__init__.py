"""Document extraction services."""

from pocket_ledger.services.extraction.gemini_service import (
    ExtractionError,
    ExtractionFailedError,
    GeminiDocumentExtractor,
    build_extraction_prompt,
    parse_extraction_response,
)

__all__ = [
    "ExtractionError",
    "ExtractionFailedError",
    "GeminiDocumentExtractor",
    "build_extraction_prompt",
    "parse_extraction_response",
]
