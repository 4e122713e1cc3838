"""OCR fallback tier for scanned PDFs

Two engines are tried in order: AWS Textract, then a vision-model
transcription of rendered pages. Each engine reports failure through an
``ExtractionAttempt`` so the chain can move on.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence

import boto3
import fitz  # PyMuPDF
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, HTTPClientError
from botocore.exceptions import ConnectionError as BotoConnectionError

from backend.app.core.config import settings
from backend.app.core.exceptions import OracleUnavailable
from backend.app.core.logging import get_logger
from ml.inference.oracle_client import OracleClient
from ml.inference.prompts import VISION_OCR_INSTRUCTIONS
from ml.parsing.text_extractor import BaseExtractor, ExtractionAttempt, PDF

logger = get_logger(__name__)

RETRYABLE_ERROR_CODES = frozenset({
    'ThrottlingException',
    'ProvisionedThroughputExceededException',
    'LimitExceededException',
    'InternalServerError',
    'ServiceUnavailableException',
})


def is_retryable(error: Exception) -> bool:
    """Whether a failed Textract call may succeed if repeated"""
    if isinstance(error, (asyncio.TimeoutError, BotoConnectionError, HTTPClientError)):
        return True
    if isinstance(error, ClientError):
        code = error.response.get('Error', {}).get('Code')
        status = error.response.get('ResponseMetadata', {}).get('HTTPStatusCode') or 0
        return code in RETRYABLE_ERROR_CODES or status >= 500
    return False


def render_pdf_pages(buffer: bytes, max_pages: int, zoom: float = 2.0) -> List[bytes]:
    """Rasterize the first ``max_pages`` pages of a PDF to PNG bytes"""
    images = []
    with fitz.open(stream=buffer, filetype="pdf") as document:
        for page_number, page in enumerate(document):
            if page_number >= max_pages:
                break
            pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
            images.append(pixmap.tobytes("png"))
    return images


class TextractOCREngine(BaseExtractor):
    """
    AWS Textract text detection over rendered PDF pages

    The synchronous DetectDocumentText API accepts single-page images, so
    each page is rendered to PNG and sent on its own. Throttling, 5xx and
    transport errors are retried with doubling backoff (2s, 4s with the
    default settings); any other error fails the engine at once. An empty
    result is a valid answer.
    """

    method = "ocr_textract"
    file_types = (PDF,)

    def __init__(
        self,
        client=None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        timeout_seconds: Optional[int] = None,
        max_pages: Optional[int] = None,
        enabled: Optional[bool] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self._client = client
        self.max_attempts = max_attempts or settings.OCR_MAX_ATTEMPTS
        self.backoff_seconds = settings.OCR_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        self.timeout_seconds = timeout_seconds or settings.OCR_TIMEOUT_SECONDS
        self.max_pages = max_pages or settings.TEXTRACT_MAX_PAGES
        self.enabled = settings.TEXTRACT_ENABLED if enabled is None else enabled
        self._sleep = sleep

    def is_available(self) -> bool:
        return self.enabled

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                'textract',
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=settings.AWS_REGION,
                config=Config(
                    connect_timeout=self.timeout_seconds,
                    read_timeout=self.timeout_seconds,
                    retries={'max_attempts': 0}
                )
            )
        return self._client

    def detect_text(self, image: bytes) -> str:
        """Run text detection on one page image and join its LINE blocks"""
        response = self.client.detect_document_text(Document={'Bytes': image})
        lines = [
            block.get('Text', '')
            for block in response.get('Blocks', [])
            if block.get('BlockType') == 'LINE'
        ]
        return '\n'.join(line for line in lines if line)

    async def _detect_page(self, image: bytes, page_number: int) -> str:
        """
        Detect text on one page, retrying transient failures

        Raises:
            asyncio.TimeoutError, ClientError, BotoCoreError: The last error
                once retries are exhausted, or the first non-retryable one
        """
        for attempt_number in range(1, self.max_attempts + 1):
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self.detect_text, image),
                    timeout=self.timeout_seconds
                )
            except (asyncio.TimeoutError, ClientError, BotoCoreError) as e:
                if not is_retryable(e) or attempt_number == self.max_attempts:
                    raise
                logger.warning(
                    f"Textract page {page_number} attempt {attempt_number}/{self.max_attempts} "
                    f"failed: {str(e) or type(e).__name__}"
                )
                await self._sleep(self.backoff_seconds * (2 ** (attempt_number - 1)))

    async def attempt(self, buffer: bytes, file_type: str) -> ExtractionAttempt:
        if not self.is_available():
            return ExtractionAttempt.failed(self.method, "not configured")

        try:
            images = await asyncio.to_thread(render_pdf_pages, buffer, self.max_pages)
        except Exception as e:
            logger.warning(f"Could not render PDF pages for Textract: {str(e)}")
            return ExtractionAttempt.failed(self.method, f"render failed: {str(e)}")

        if not images:
            return ExtractionAttempt.failed(self.method, "document has no pages")

        pages = []
        for page_number, image in enumerate(images, start=1):
            try:
                pages.append(await self._detect_page(image, page_number))
            except asyncio.TimeoutError:
                error = f"timed out after {self.timeout_seconds}s"
                logger.warning(f"Textract gave up on page {page_number}: {error}")
                return ExtractionAttempt.failed(self.method, f"page {page_number}: {error}")
            except (ClientError, BotoCoreError) as e:
                logger.warning(f"Textract gave up on page {page_number}: {str(e)}")
                return ExtractionAttempt.failed(self.method, f"page {page_number}: {str(e)}")

        text = "\n\n".join(page for page in pages if page)
        logger.info(f"Textract returned {len(text)} characters from {len(images)} pages")
        return ExtractionAttempt(method=self.method, text=text.strip())


class VisionOCREngine(BaseExtractor):
    """Transcribe rendered PDF pages with a vision-capable oracle model"""

    method = "ocr_vision"
    file_types = (PDF,)

    def __init__(self, oracle: Optional[OracleClient] = None, max_pages: Optional[int] = None):
        self.oracle = oracle or OracleClient()
        self.max_pages = max_pages or settings.VISION_OCR_MAX_PAGES

    def is_available(self) -> bool:
        return self.oracle.is_configured()

    async def attempt(self, buffer: bytes, file_type: str) -> ExtractionAttempt:
        if not self.is_available():
            return ExtractionAttempt.failed(self.method, "not configured")

        try:
            images = await asyncio.to_thread(render_pdf_pages, buffer, self.max_pages)
        except Exception as e:
            logger.warning(f"Could not render PDF pages for vision OCR: {str(e)}")
            return ExtractionAttempt.failed(self.method, f"render failed: {str(e)}")

        if not images:
            return ExtractionAttempt.failed(self.method, "document has no pages")

        try:
            text = await self.oracle.transcribe_images(
                images,
                instructions=VISION_OCR_INSTRUCTIONS,
                model=settings.OPENAI_VISION_MODEL
            )
        except OracleUnavailable as e:
            return ExtractionAttempt.failed(self.method, e.message)

        logger.info(f"Vision OCR transcribed {len(text)} characters from {len(images)} pages")
        return ExtractionAttempt(method=self.method, text=text)


class OCRFallbackExtractor(BaseExtractor):
    """
    OCR tier composed of several engines

    The first engine whose text clears the minimum length wins. When none
    does, the longest partial text (if any) is reported with the engines'
    combined errors.
    """

    method = "ocr"
    file_types = (PDF,)

    def __init__(
        self,
        engines: Optional[Sequence[BaseExtractor]] = None,
        min_text_length: Optional[int] = None
    ):
        self.engines = list(engines) if engines is not None else [TextractOCREngine(), VisionOCREngine()]
        self.min_text_length = min_text_length or settings.MIN_RESUME_TEXT_LENGTH

    def is_available(self) -> bool:
        return any(engine.is_available() for engine in self.engines)

    async def attempt(self, buffer: bytes, file_type: str) -> ExtractionAttempt:
        if not self.is_available():
            return ExtractionAttempt.failed(self.method, "no OCR engine configured")

        errors = []
        best: Optional[ExtractionAttempt] = None

        for engine in self.engines:
            result = await engine.attempt(buffer, file_type)
            if result.is_usable(self.min_text_length):
                return ExtractionAttempt(method=engine.method, text=result.text)

            errors.append(f"{engine.method}: {result.error or f'{result.text_length} characters'}")
            if result.error is None and (best is None or result.text_length > best.text_length):
                best = result

        if best is not None and best.text_length > 0:
            return ExtractionAttempt(method=best.method, text=best.text)
        return ExtractionAttempt.failed(self.method, "; ".join(errors))
