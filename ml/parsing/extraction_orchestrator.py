"""Layered text extraction with fallback tiers"""

from typing import List, Optional, Sequence

from backend.app.core.config import settings
from backend.app.core.exceptions import ExtractionExhausted
from backend.app.core.logging import get_logger
from ml.parsing.ocr_extractor import OCRFallbackExtractor
from ml.parsing.text_extractor import (
    BaseExtractor,
    ExtractionAttempt,
    TextExtractor,
    normalize_file_type
)
from ml.parsing.text_run_extractor import TextRunPdfExtractor

logger = get_logger(__name__)


def default_tiers() -> List[BaseExtractor]:
    return [TextExtractor(), OCRFallbackExtractor(), TextRunPdfExtractor()]


class ExtractionOrchestrator:
    """
    Run extraction tiers in order until one yields enough text

    Tiers that do not handle the declared type are skipped, so Word
    documents stop after the native reader.
    """

    def __init__(
        self,
        tiers: Optional[Sequence[BaseExtractor]] = None,
        min_text_length: Optional[int] = None
    ):
        self.tiers = list(tiers) if tiers is not None else default_tiers()
        self.min_text_length = min_text_length or settings.MIN_RESUME_TEXT_LENGTH

    async def extract_detailed(self, buffer: bytes, declared_type: str) -> ExtractionAttempt:
        """
        Extract text and report which tier produced it

        Args:
            buffer: Document bytes
            declared_type: Extension, MIME type or filename

        Returns:
            The winning ExtractionAttempt

        Raises:
            UnsupportedFileType: If the declared type is not pdf/doc/docx
            ExtractionExhausted: If every applicable tier fails
        """
        file_type = normalize_file_type(declared_type)
        errors = {}

        for tier in self.tiers:
            if not tier.supports(file_type):
                continue

            result = await tier.attempt(buffer, file_type)
            if result.is_usable(self.min_text_length):
                logger.info(
                    f"Extracted {result.text_length} characters via {result.method}",
                    extra={"method": result.method}
                )
                return result

            errors[tier.method] = result.error or (
                f"insufficient text ({result.text_length} < {self.min_text_length} characters)"
            )
            logger.info(f"Extraction tier {tier.method} unusable: {errors[tier.method]}")

        logger.warning(f"All extraction tiers failed for {file_type} document", extra={"attempts": errors})
        raise ExtractionExhausted(errors)

    async def extract(self, buffer: bytes, declared_type: str) -> str:
        """Extract text from a resume buffer"""
        result = await self.extract_detailed(buffer, declared_type)
        return result.text
