"""Score a structured resume against a job"""

import math
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from backend.app.core.config import settings
from backend.app.core.exceptions import ScoringFailed, OracleUnavailable
from backend.app.core.logging import get_logger
from backend.app.schemas.resume import ParsedResume
from backend.app.schemas.score import AIScore
from ml.inference.oracle_client import OracleClient, OracleResponseError
from ml.inference.prompts import SCORE_SYSTEM_PROMPT, SCORE_USER_PROMPT

logger = get_logger(__name__)

SCORE_FIELDS = ("overallScore", "skillsMatch", "experienceMatch", "educationMatch")


def clamp_score(value: Any) -> float:
    """
    Clamp an oracle score into [0, 100]

    Raises:
        ScoringFailed: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ScoringFailed(f"non-numeric score: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ScoringFailed(f"non-numeric score: {value!r}")
    if math.isnan(number):
        raise ScoringFailed("score is NaN")
    return min(100.0, max(0.0, number))


def _as_text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def build_scoring_prompt(resume: ParsedResume, job_description: str, job_requirements: List[str]) -> str:
    """Render the scoring prompt; only the whitelisted resume fields are included"""
    payload = resume.scoring_payload()

    experience_lines = [
        f"- {entry.get('title') or ''} at {entry.get('company') or ''} ({entry.get('duration') or ''})"
        for entry in payload["experience"]
    ]
    education_lines = [
        f"- {entry.get('degree') or ''} in {entry.get('field') or ''} from {entry.get('institution') or ''}"
        for entry in payload["education"]
    ]

    return SCORE_USER_PROMPT.format(
        job_description=job_description or "",
        job_requirements="\n".join(job_requirements or []),
        summary=payload["summary"] or "No summary provided",
        skills=", ".join(payload["skills"]),
        experience="\n".join(experience_lines),
        education="\n".join(education_lines),
        certifications=", ".join(payload["certifications"]),
        languages=", ".join(payload["languages"]),
    )


class CandidateScorer:
    """Multi-axis candidate/job scoring through a single oracle call"""

    TEMPERATURE = 0.5
    MAX_TOKENS = 1500

    def __init__(self, oracle: Optional[OracleClient] = None, model: Optional[str] = None):
        self.oracle = oracle or OracleClient()
        self.model = model or settings.OPENAI_SCORING_MODEL

    @staticmethod
    def to_ai_score(payload: Dict[str, Any]) -> AIScore:
        """
        Convert raw oracle output into a clamped AIScore

        Raises:
            ScoringFailed: On a missing or non-numeric score, or an unknown recommendation
        """
        normalized = dict(payload)
        for field in SCORE_FIELDS:
            if normalized.get(field) is None:
                raise ScoringFailed(f"missing field: {field}")
            normalized[field] = clamp_score(normalized[field])

        normalized["strengths"] = _as_text_list(normalized.get("strengths"))
        normalized["concerns"] = _as_text_list(normalized.get("concerns"))
        normalized["summary"] = str(normalized.get("summary") or "")

        try:
            return AIScore.model_validate(normalized)
        except ValidationError as e:
            raise ScoringFailed(f"response did not match score schema ({e.error_count()} errors)")

    async def score(
        self,
        parsed_resume: ParsedResume,
        job_description: str,
        job_requirements: List[str]
    ) -> AIScore:
        """
        Score a resume against a job

        Args:
            parsed_resume: Structured resume, possibly sparse
            job_description: Job description text
            job_requirements: Job requirement lines

        Returns:
            AIScore with every axis in [0, 100]

        Raises:
            ScoringFailed: If the oracle fails or returns an unusable score
        """
        try:
            payload = await self.oracle.complete_json(
                system_prompt=SCORE_SYSTEM_PROMPT,
                user_prompt=build_scoring_prompt(parsed_resume, job_description, job_requirements),
                model=self.model,
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        except (OracleUnavailable, OracleResponseError) as e:
            raise ScoringFailed(str(e))

        ai_score = self.to_ai_score(payload)
        logger.info(f"Candidate scored {ai_score.overall_score} ({ai_score.recommendation})")
        return ai_score
