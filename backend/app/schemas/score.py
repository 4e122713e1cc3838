"""AI score schemas"""

from enum import Enum
from typing import List
from pydantic import BaseModel, Field, ConfigDict


class Recommendation(str, Enum):
    """Categorical fit recommendation"""
    STRONG_FIT = "strong_fit"
    GOOD_FIT = "good_fit"
    MODERATE_FIT = "moderate_fit"
    POOR_FIT = "poor_fit"


class AIScore(BaseModel):
    """Multi-axis candidate/job match score, each axis on a 0-100 scale"""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "overallScore": 82,
                "skillsMatch": 90,
                "experienceMatch": 75,
                "educationMatch": 80,
                "summary": "Strong backend profile with most required skills.",
                "strengths": ["Python", "Distributed systems"],
                "concerns": ["No Kubernetes experience"],
                "recommendation": "good_fit"
            }
        }
    )

    overall_score: float = Field(ge=0, le=100, alias="overallScore")
    skills_match: float = Field(ge=0, le=100, alias="skillsMatch")
    experience_match: float = Field(ge=0, le=100, alias="experienceMatch")
    education_match: float = Field(ge=0, le=100, alias="educationMatch")
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)
    recommendation: Recommendation
