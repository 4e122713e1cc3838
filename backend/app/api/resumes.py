"""Resume API endpoints"""

from fastapi import APIRouter, Depends, UploadFile, File, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.database import get_db
from backend.app.core.exceptions import ValidationException
from backend.app.core.logging import get_logger
from backend.app.core.security import Principal, require_recruiter
from backend.app.repositories.application_repository import ApplicationRepository
from backend.app.repositories.job_repository import JobRepository
from backend.app.schemas.resume import ParseResumeResponse
from backend.app.services.resume_service import ResumeService
from backend.app.services.s3_service import S3Service

logger = get_logger(__name__)

router = APIRouter()


async def get_resume_service(db: AsyncSession = Depends(get_db)) -> ResumeService:
    """Dependency to get resume service"""
    return ResumeService(ApplicationRepository(db), S3Service(), JobRepository(db))


async def read_upload(file: UploadFile) -> bytes:
    """
    Read an uploaded file into memory

    Raises:
        ValidationException: If the upload has no filename
    """
    if not file.filename:
        raise ValidationException("Filename is required")
    return await file.read()


@router.post("/parse", response_model=ParseResumeResponse, status_code=status.HTTP_200_OK)
async def parse_resume(
    file: UploadFile = File(...),
    current_user: Principal = Depends(require_recruiter),
    resume_service: ResumeService = Depends(get_resume_service)
):
    """
    Extract and structure a resume without storing it

    **Requirements:**
    - File must be PDF, DOC or DOCX
    - File size must be under the configured upload limit
    - User must have recruiter or admin role

    **Returns:**
    - parsed_resume: Structured resume
    - extracted_text: Text the structure was derived from
    - extraction_method: Extraction tier that produced the text
    """
    logger.info(f"Resume parse request from user {current_user.user_id}: {file.filename}")
    buffer = await read_upload(file)
    return await resume_service.parse_resume(buffer, file.filename)
