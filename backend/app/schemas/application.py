"""Application and approval schemas"""

from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from backend.app.models.application import ApplicationStatus, ApplicationSource


class ApproveApplicationRequest(BaseModel):
    """Body of an approval request"""
    job_id: UUID = Field(..., description="Job the candidate is approved for")
    assign_to_pipeline: Optional[UUID] = Field(
        default=None,
        description="Pipeline to stage the candidate in; defaults to the job's pipeline"
    )
    notes: Optional[str] = Field(default=None, max_length=5000)


class ApplicationResponse(BaseModel):
    """Application as returned by the API"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_id: Optional[UUID] = None
    client_id: Optional[str] = None
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    resume_original_name: Optional[str] = None
    parsed_data: Optional[Dict[str, Any]] = None
    is_valid_resume: Optional[bool] = None
    validation_score: Optional[int] = None
    validation_reason: Optional[str] = None
    status: ApplicationStatus
    source: ApplicationSource
    notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CandidateResponse(BaseModel):
    """Candidate as returned by the API"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    job_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    summary: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience: List[Dict[str, Any]] = Field(default_factory=list)
    education: List[Dict[str, Any]] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    years_of_experience: Optional[float] = None
    pipeline_id: Optional[UUID] = None
    current_pipeline_stage_id: Optional[str] = None
    ai_score: Optional[Dict[str, Any]] = None
    job_applications: List[Dict[str, Any]] = Field(default_factory=list)
    status: str
    source: str
    created_by: Optional[str] = None
    notes: Optional[str] = None


class ApprovalResponse(BaseModel):
    """Result of approving an application"""
    candidate: CandidateResponse
    application: ApplicationResponse
    message: str = "Application approved and candidate created successfully"
