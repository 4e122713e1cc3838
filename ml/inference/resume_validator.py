"""Advisory resume legitimacy check"""

from typing import Any, Dict, Optional

from pydantic import ValidationError

from backend.app.core.config import settings
from backend.app.core.exceptions import ValidationUnavailable, OracleUnavailable
from backend.app.core.logging import get_logger
from backend.app.schemas.resume import ValidationResult
from ml.inference.oracle_client import OracleClient, OracleResponseError
from ml.inference.prompts import VALIDATE_SYSTEM_PROMPT, VALIDATE_USER_PROMPT

logger = get_logger(__name__)


def _normalize_score(payload: Dict[str, Any]) -> Dict[str, Any]:
    score = payload.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return payload
    return {**payload, "score": int(round(min(100.0, max(0.0, float(score)))))}


class ResumeValidator:
    """
    Judge whether a document is a genuine resume

    The verdict is advisory. When it cannot be produced the result is
    ``None`` ("unknown"), never "invalid".
    """

    TEMPERATURE = 0.2
    MAX_TOKENS = 500

    def __init__(self, oracle: Optional[OracleClient] = None, model: Optional[str] = None):
        self.oracle = oracle or OracleClient()
        self.model = model or settings.OPENAI_MODEL

    async def _request(self, text: str) -> ValidationResult:
        try:
            payload = await self.oracle.complete_json(
                system_prompt=VALIDATE_SYSTEM_PROMPT,
                user_prompt=VALIDATE_USER_PROMPT.format(resume_text=text),
                model=self.model,
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
            return ValidationResult.model_validate(_normalize_score(payload))
        except (OracleUnavailable, OracleResponseError, ValidationError) as e:
            raise ValidationUnavailable(str(e))

    async def validate(self, text: str) -> Optional[ValidationResult]:
        """
        Validate resume text

        Args:
            text: Extracted resume text

        Returns:
            ValidationResult, or None when validation could not be performed
        """
        trimmed = (text or "").strip()
        if not trimmed:
            return None

        try:
            result = await self._request(trimmed)
        except ValidationUnavailable as e:
            logger.warning(e.message)
            return None

        logger.info(f"Resume validation: valid={result.is_valid} score={result.score}")
        return result
