"""Native text extraction from resume buffers"""

import asyncio
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pypdf
import docx

from backend.app.core.config import settings
from backend.app.core.logging import get_logger
from backend.app.core.exceptions import ValidationException, UnsupportedFileType

logger = get_logger(__name__)

PDF = "pdf"
DOCX = "docx"
DOC = "doc"

_TYPE_ALIASES = {
    "pdf": PDF,
    "application/pdf": PDF,
    "docx": DOCX,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DOCX,
    "doc": DOC,
    "application/msword": DOC,
}


def normalize_file_type(declared_type: Optional[str]) -> str:
    """
    Map a declared type to one of pdf/docx/doc

    Accepts bare extensions ("pdf", ".pdf"), MIME types, or filenames.
    Only types listed in ``settings.ALLOWED_EXTENSIONS`` are accepted.

    Raises:
        UnsupportedFileType: If the type has no extraction tier or is not allowed
    """
    raw = (declared_type or "").strip().lower()
    file_type = _TYPE_ALIASES.get(raw.lstrip("."))

    if file_type is None and "." in raw:
        suffix = Path(raw).suffix.lstrip(".")
        if suffix in (PDF, DOCX, DOC):
            file_type = suffix

    allowed = {ext.lower().lstrip(".") for ext in settings.ALLOWED_EXTENSIONS}
    if file_type is None or file_type not in allowed:
        raise UnsupportedFileType(declared_type or "<missing>")

    return file_type


@dataclass(frozen=True)
class ExtractionAttempt:
    """Outcome of one extraction tier; tiers report failures instead of raising"""
    method: str
    text: str = ""
    error: Optional[str] = None

    @property
    def text_length(self) -> int:
        return len(self.text.strip())

    def is_usable(self, min_length: int) -> bool:
        return self.error is None and self.text_length >= min_length

    @classmethod
    def failed(cls, method: str, error: str) -> "ExtractionAttempt":
        return cls(method=method, error=error)


class BaseExtractor:
    """A single tier of the extraction chain"""

    method = "base"
    file_types: tuple = ()

    def supports(self, file_type: str) -> bool:
        return file_type in self.file_types

    def is_available(self) -> bool:
        return True

    async def attempt(self, buffer: bytes, file_type: str) -> ExtractionAttempt:
        """
        Run this tier against a buffer

        Never raises; any error is folded into the returned attempt.
        """
        if not self.is_available():
            return ExtractionAttempt.failed(self.method, "not configured")

        try:
            text = await asyncio.to_thread(self.extract, buffer, file_type)
        except Exception as e:
            logger.warning(f"[{self.method}] extraction failed: {str(e)}", extra={"method": self.method})
            return ExtractionAttempt.failed(self.method, str(e))

        return ExtractionAttempt(method=self.method, text=(text or "").strip())

    def extract(self, buffer: bytes, file_type: str) -> str:
        raise NotImplementedError


class TextExtractor(BaseExtractor):
    """Extract the embedded text layer of PDF and Word documents"""

    method = "native"
    file_types = (PDF, DOCX, DOC)

    @staticmethod
    def extract_from_pdf(buffer: bytes) -> str:
        """
        Extract text from a PDF buffer

        Args:
            buffer: PDF bytes

        Returns:
            Extracted text

        Raises:
            ValidationException: If the PDF cannot be read
        """
        try:
            pdf_reader = pypdf.PdfReader(io.BytesIO(buffer))

            # Many resumes are "encrypted" with an empty user password
            if pdf_reader.is_encrypted and not pdf_reader.decrypt(""):
                raise ValidationException("PDF file is encrypted and cannot be processed")

            text_parts = []
            for page in pdf_reader.pages:
                text = page.extract_text()
                if text:
                    text_parts.append(text)

            extracted_text = '\n'.join(text_parts)
            logger.info(f"Extracted {len(extracted_text)} characters from PDF text layer")
            return extracted_text

        except ValidationException:
            raise
        except pypdf.errors.PdfReadError as e:
            raise ValidationException(f"Failed to read PDF file: {str(e)}")
        except Exception as e:
            raise ValidationException(f"Failed to extract text from PDF: {str(e)}")

    @staticmethod
    def extract_from_docx(buffer: bytes) -> str:
        """
        Extract text from a Word buffer (paragraphs, then table cells)

        Legacy binary .doc files are not OOXML and fail here; Word documents
        have no further fallback.

        Args:
            buffer: DOCX bytes

        Returns:
            Extracted text

        Raises:
            ValidationException: If the document cannot be read
        """
        try:
            document = docx.Document(io.BytesIO(buffer))

            text_parts = [p.text for p in document.paragraphs if p.text.strip()]

            for table in document.tables:
                for row in table.rows:
                    for cell in row.cells:
                        if cell.text.strip():
                            text_parts.append(cell.text)

            extracted_text = '\n'.join(text_parts)
            logger.info(f"Extracted {len(extracted_text)} characters from Word document")
            return extracted_text

        except Exception as e:
            raise ValidationException(f"Failed to extract text from Word document: {str(e)}")

    def extract(self, buffer: bytes, file_type: str) -> str:
        if file_type == PDF:
            return self.extract_from_pdf(buffer)
        return self.extract_from_docx(buffer)
