"""Resume schemas

Oracle output is untrusted JSON; these models are the strict shape it must
fit before anything downstream sees it. Every attribute is optional because
resumes routinely omit sections, and ``null`` lists are read as empty.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


def _none_to_empty_list(value):
    return [] if value is None else value


class PersonalInfo(BaseModel):
    """Contact block at the top of a resume"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    website: Optional[str] = None


class ExperienceEntry(BaseModel):
    """Work experience entry; duration is free text such as 'Jan 2020 - Present'"""
    model_config = ConfigDict(extra="ignore")

    company: Optional[str] = None
    title: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None


class EducationEntry(BaseModel):
    """Education entry"""
    model_config = ConfigDict(extra="ignore")

    institution: Optional[str] = None
    degree: Optional[str] = None
    field: Optional[str] = None
    year: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, value):
        # Oracles frequently answer 2020 instead of "2020"
        if isinstance(value, int):
            return str(value)
        return value


class ParsedResume(BaseModel):
    """Structured resume record derived from raw text"""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "personalInfo": {
                    "firstName": "Jane",
                    "lastName": "Smith",
                    "email": "jane.smith@example.com",
                    "phone": "+1 555 0100"
                },
                "summary": "Backend engineer with six years of Python experience.",
                "skills": ["Python", "PostgreSQL", "AWS"],
                "experience": [
                    {
                        "company": "Acme Corp",
                        "title": "Senior Engineer",
                        "duration": "Jan 2020 - Present",
                        "description": "Led the payments platform team"
                    }
                ],
                "education": [
                    {
                        "institution": "State University",
                        "degree": "Bachelor of Science in Computer Science",
                        "field": "Computer Science",
                        "year": "2017"
                    }
                ],
                "certifications": ["AWS Certified Solutions Architect"],
                "languages": ["English", "Spanish"]
            }
        }
    )

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo, alias="personalInfo")
    summary: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)

    @field_validator("skills", "experience", "education", "certifications", "languages", mode="before")
    @classmethod
    def _lists_default_empty(cls, value):
        return _none_to_empty_list(value)

    @field_validator("personal_info", mode="before")
    @classmethod
    def _personal_info_default(cls, value):
        return {} if value is None else value

    def scoring_payload(self) -> dict:
        """Fields sent to the scoring oracle; raw text and identity are excluded"""
        return {
            "summary": self.summary,
            "skills": list(self.skills),
            "experience": [entry.model_dump() for entry in self.experience],
            "education": [entry.model_dump() for entry in self.education],
            "certifications": list(self.certifications),
            "languages": list(self.languages),
        }


class ValidationResult(BaseModel):
    """Oracle judgement of whether a document is a genuine resume"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    is_valid: bool = Field(alias="isValid")
    score: int = Field(ge=0, le=100)
    reason: str = ""


class ParseResumeResponse(BaseModel):
    """Response for parse-only requests"""
    parsed_resume: ParsedResume
    extracted_text: str
    extraction_method: str
