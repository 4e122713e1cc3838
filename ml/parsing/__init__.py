"""Resume text extraction and field repair"""

from ml.parsing.text_extractor import TextExtractor, ExtractionAttempt, normalize_file_type
from ml.parsing.ocr_extractor import OCRFallbackExtractor, TextractOCREngine, VisionOCREngine
from ml.parsing.text_run_extractor import TextRunPdfExtractor
from ml.parsing.extraction_orchestrator import ExtractionOrchestrator

__all__ = [
    'TextExtractor',
    'ExtractionAttempt',
    'normalize_file_type',
    'OCRFallbackExtractor',
    'TextractOCREngine',
    'VisionOCREngine',
    'TextRunPdfExtractor',
    'ExtractionOrchestrator',
]
