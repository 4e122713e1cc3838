"""Application API endpoints"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, UploadFile, File, Form, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.resumes import get_resume_service, read_upload
from backend.app.core.database import get_db
from backend.app.core.exceptions import NotFoundException
from backend.app.core.logging import get_logger
from backend.app.core.security import Principal, require_any_role, require_recruiter
from backend.app.models.application import ApplicationSource
from backend.app.repositories.application_repository import ApplicationRepository
from backend.app.repositories.candidate_repository import CandidateRepository
from backend.app.repositories.job_repository import JobRepository
from backend.app.repositories.pipeline_repository import PipelineRepository
from backend.app.schemas.application import (
    ApplicationResponse,
    ApprovalResponse,
    ApproveApplicationRequest,
    CandidateResponse
)
from backend.app.services.approval_service import ApprovalService
from backend.app.services.resume_service import ResumeService

logger = get_logger(__name__)

router = APIRouter()


async def get_approval_service(db: AsyncSession = Depends(get_db)) -> ApprovalService:
    """Dependency to get approval service"""
    return ApprovalService(
        ApplicationRepository(db),
        CandidateRepository(db),
        JobRepository(db),
        PipelineRepository(db)
    )


@router.post("/parse", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application_from_resume(
    file: UploadFile = File(...),
    job_id: Optional[UUID] = Form(None),
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    source: ApplicationSource = Form(ApplicationSource.DIRECT_APPLY),
    current_user: Principal = Depends(require_recruiter),
    resume_service: ResumeService = Depends(get_resume_service)
):
    """
    Create a pending application from an uploaded resume

    Identity fields found in the resume take precedence; the form fields
    are used when the resume has none or only placeholders. An email is
    required from one of the two.

    **Errors:**
    - 400: Unsupported file type or missing email
    - 409: An open application already exists for this job and email
    - 422: The file could not be read
    - 502: The resume could not be structured
    """
    logger.info(f"Application intake from user {current_user.user_id}: {file.filename}")
    buffer = await read_upload(file)

    return await resume_service.create_application_from_resume(
        buffer,
        file.filename,
        content_type=file.content_type,
        job_id=job_id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        source=source,
        notes=notes
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    current_user: Principal = Depends(require_any_role),
    db: AsyncSession = Depends(get_db)
):
    """Get an application by ID"""
    application = await ApplicationRepository(db).get_by_id(application_id)
    if not application:
        raise NotFoundException(f"Application not found: {application_id}")
    return application


@router.post("/{application_id}/reparse", response_model=ApplicationResponse)
async def reparse_application(
    application_id: UUID,
    current_user: Principal = Depends(require_recruiter),
    resume_service: ResumeService = Depends(get_resume_service)
):
    """Re-run extraction, structuring and validation on the stored resume"""
    logger.info(
        f"Re-parse requested by user {current_user.user_id}",
        extra={"application_id": application_id}
    )
    return await resume_service.reparse_application(application_id)


@router.post(
    "/{application_id}/approve",
    response_model=ApprovalResponse,
    status_code=status.HTTP_201_CREATED
)
async def approve_application(
    application_id: UUID,
    request: ApproveApplicationRequest,
    current_user: Principal = Depends(require_recruiter),
    approval_service: ApprovalService = Depends(get_approval_service)
):
    """
    Approve an application and create its candidate

    The candidate is scored against the job and placed in the first stage
    of the requested pipeline, or of the job's default pipeline.

    **Errors:**
    - 404: Application, job or requested pipeline not found
    - 409: Application already approved
    - 502: Scoring failed; nothing was written
    """
    result = await approval_service.approve(
        application_id,
        request.job_id,
        pipeline_id=request.assign_to_pipeline,
        reviewed_by=current_user.user_id,
        notes=request.notes
    )

    return ApprovalResponse(
        candidate=CandidateResponse.model_validate(result.candidate),
        application=ApplicationResponse.model_validate(result.application)
    )
