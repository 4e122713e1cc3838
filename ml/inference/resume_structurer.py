"""Turn raw resume text into a structured record via the oracle"""

from typing import Optional

from pydantic import ValidationError

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    StructuringFailed,
    InsufficientResumeText,
    OracleUnavailable
)
from backend.app.core.logging import get_logger
from backend.app.schemas.resume import ParsedResume
from ml.inference.oracle_client import OracleClient, OracleResponseError
from ml.inference.prompts import STRUCTURE_SYSTEM_PROMPT, STRUCTURE_USER_PROMPT

logger = get_logger(__name__)


class ResumeStructurer:
    """
    Structure resume text with a single oracle call

    The structurer owns the minimum-length gate: text too short to be a
    resume never reaches the oracle.
    """

    TEMPERATURE = 0.3
    MAX_TOKENS = 2000

    def __init__(
        self,
        oracle: Optional[OracleClient] = None,
        min_text_length: Optional[int] = None,
        model: Optional[str] = None
    ):
        self.oracle = oracle or OracleClient()
        self.min_text_length = min_text_length or settings.MIN_RESUME_TEXT_LENGTH
        self.model = model or settings.OPENAI_MODEL

    async def structure(self, text: str) -> ParsedResume:
        """
        Structure resume text

        Args:
            text: Extracted resume text

        Returns:
            ParsedResume

        Raises:
            InsufficientResumeText: If the trimmed text is below the minimum length
            StructuringFailed: If the oracle fails or its output does not fit the schema
        """
        trimmed = (text or "").strip()
        if len(trimmed) < self.min_text_length:
            raise InsufficientResumeText(len(trimmed), self.min_text_length)

        try:
            payload = await self.oracle.complete_json(
                system_prompt=STRUCTURE_SYSTEM_PROMPT,
                user_prompt=STRUCTURE_USER_PROMPT.format(resume_text=trimmed),
                model=self.model,
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        except OracleUnavailable as e:
            raise StructuringFailed(e.message)
        except OracleResponseError as e:
            logger.warning(f"Oracle returned unusable resume JSON: {str(e)}")
            raise StructuringFailed(str(e))

        try:
            parsed = ParsedResume.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Structured resume failed schema validation: {e.error_count()} errors")
            raise StructuringFailed(f"response did not match resume schema ({e.error_count()} errors)")

        logger.info(
            f"Structured resume: {len(parsed.skills)} skills, "
            f"{len(parsed.experience)} experience entries, {len(parsed.education)} education entries"
        )
        return parsed
