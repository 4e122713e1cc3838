"""Resume service for ingesting resumes into applications"""

import io
import os
from typing import Optional, Tuple
from uuid import UUID

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    ValidationException,
    NotFoundException,
    ConflictException,
    JobNotFound
)
from backend.app.core.logging import get_logger
from backend.app.models.application import Application, ApplicationSource, ApplicationStatus
from backend.app.repositories.application_repository import ApplicationRepository
from backend.app.repositories.job_repository import JobRepository
from backend.app.schemas.resume import ParsedResume, ParseResumeResponse, ValidationResult
from backend.app.services.s3_service import S3Service
from ml.inference.resume_structurer import ResumeStructurer
from ml.inference.resume_validator import ResumeValidator
from ml.parsing.extraction_orchestrator import ExtractionOrchestrator
from ml.parsing.field_repair import has_placeholder_identity, is_placeholder
from ml.parsing.text_extractor import normalize_file_type

logger = get_logger(__name__)


def _validation_fields(validation: Optional[ValidationResult]) -> dict:
    """Validation triad columns; all null when validation was unavailable"""
    if validation is None:
        return {'is_valid_resume': None, 'validation_score': None, 'validation_reason': None}
    return {
        'is_valid_resume': validation.is_valid,
        'validation_score': validation.score,
        'validation_reason': validation.reason,
    }


class ResumeService:
    """Service for resume parsing and application intake"""

    def __init__(
        self,
        application_repository: ApplicationRepository,
        s3_service: S3Service,
        job_repository: JobRepository,
        orchestrator: Optional[ExtractionOrchestrator] = None,
        structurer: Optional[ResumeStructurer] = None,
        validator: Optional[ResumeValidator] = None
    ):
        """
        Initialize resume service

        Args:
            application_repository: Application repository
            s3_service: Resume storage
            job_repository: Job lookup for intake
            orchestrator: Text extraction chain
            structurer: Oracle-backed resume structurer
            validator: Advisory resume validator
        """
        self.application_repo = application_repository
        self.s3_service = s3_service
        self.job_repo = job_repository
        self.orchestrator = orchestrator or ExtractionOrchestrator()
        self.structurer = structurer or ResumeStructurer()
        self.validator = validator or ResumeValidator()

    def _validate_upload(self, buffer: bytes, filename: str) -> str:
        """
        Check size and file format of an upload

        Returns:
            Normalized file type

        Raises:
            ValidationException: If the file is empty or too large
            UnsupportedFileType: If the extension is not accepted
        """
        if not buffer:
            raise ValidationException("Uploaded file is empty")

        if len(buffer) > settings.MAX_UPLOAD_SIZE:
            raise ValidationException(
                f"File too large: {len(buffer)} bytes (maximum {settings.MAX_UPLOAD_SIZE})"
            )

        return normalize_file_type(filename)

    async def _extract_and_structure(
        self,
        buffer: bytes,
        file_type: str
    ) -> Tuple[str, str, ParsedResume]:
        attempt = await self.orchestrator.extract_detailed(buffer, file_type)
        parsed_resume = await self.structurer.structure(attempt.text)
        return attempt.text, attempt.method, parsed_resume

    async def parse_resume(self, buffer: bytes, filename: str) -> ParseResumeResponse:
        """
        Extract and structure a resume without persisting anything

        Args:
            buffer: Uploaded file bytes
            filename: Original filename

        Returns:
            Parsed resume with the extracted text

        Raises:
            ValidationException: If the upload is rejected
            ExtractionExhausted: If no text could be extracted
            StructuringFailed: If the oracle could not structure the text
        """
        file_type = self._validate_upload(buffer, filename)
        text, method, parsed_resume = await self._extract_and_structure(buffer, file_type)

        logger.info(f"Parsed resume {filename} via {method}")
        return ParseResumeResponse(
            parsed_resume=parsed_resume,
            extracted_text=text,
            extraction_method=method
        )

    async def create_application_from_resume(
        self,
        buffer: bytes,
        filename: str,
        content_type: Optional[str] = None,
        job_id: Optional[UUID] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        source: ApplicationSource = ApplicationSource.DIRECT_APPLY,
        client_id: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Application:
        """
        Create a pending application from an uploaded resume

        Workflow:
        1. Validate the upload and the target job
        2. Extract text and structure it
        3. Validate resume legitimacy (advisory)
        4. Resolve identity, preferring parsed values over caller input
        5. Reject duplicates for the same job and email
        6. Store the file and create the application

        Raises:
            ValidationException: If the upload is rejected or no email is available
            JobNotFound: If ``job_id`` names no job
            ConflictException: If an open application exists for the job and email
        """
        logger.info(f"Creating application from resume: {filename}")

        file_type = self._validate_upload(buffer, filename)

        if job_id is not None:
            job = await self.job_repo.get_by_id(job_id)
            if not job:
                raise JobNotFound(job_id)
            client_id = client_id or job.client_id

        text, method, parsed_resume = await self._extract_and_structure(buffer, file_type)
        validation = await self.validator.validate(text)

        info = parsed_resume.personal_info
        if has_placeholder_identity(info.first_name, info.last_name):
            resolved_first, resolved_last = first_name or "", last_name or ""
        else:
            resolved_first, resolved_last = info.first_name or "", info.last_name or ""

        resolved_email = (info.email if not is_placeholder(info.email) else None) or email
        if not resolved_email:
            raise ValidationException("An email address is required and none was found in the resume")
        resolved_email = resolved_email.strip().lower()

        existing = await self.application_repo.find_open_by_job_and_email(job_id, resolved_email)
        if existing:
            raise ConflictException(
                "An application for this job and email already exists",
                details={"application_id": str(existing.id)}
            )

        resume_url = await self.s3_service.upload_resume(
            io.BytesIO(buffer),
            filename,
            content_type=content_type or "application/octet-stream"
        )

        try:
            application = await self.application_repo.create({
                'job_id': job_id,
                'client_id': client_id,
                'first_name': resolved_first,
                'last_name': resolved_last,
                'email': resolved_email,
                'phone': (info.phone if not is_placeholder(info.phone) else None) or phone,
                'resume_url': resume_url,
                'resume_original_name': os.path.basename(filename),
                'resume_raw_text': text,
                'parsed_data': parsed_resume.model_dump(mode='json', by_alias=True),
                'status': ApplicationStatus.PENDING,
                'source': source,
                'notes': notes,
                **_validation_fields(validation),
            })
        except Exception:
            # No application row references the upload
            logger.warning(f"Application insert failed; removing uploaded resume {resume_url}")
            await self.s3_service.delete_resume(resume_url)
            raise

        logger.info(
            f"Created application from resume via {method}",
            extra={"application_id": application.id}
        )
        return application

    async def reparse_application(self, application_id: UUID) -> Application:
        """
        Re-run extraction, structuring and validation on a stored resume

        Args:
            application_id: Application UUID

        Returns:
            Updated application

        Raises:
            NotFoundException: If the application or its resume file is missing
            ConflictException: If the application is already approved
        """
        application = await self.application_repo.get_by_id(application_id)
        if not application:
            raise NotFoundException(f"Application not found: {application_id}")

        if application.is_approved:
            raise ConflictException(
                "Approved applications cannot be re-parsed",
                details={"application_id": str(application_id)}
            )

        if not application.resume_url:
            raise NotFoundException(f"No resume file for application: {application_id}")

        buffer = await self.s3_service.fetch_resume(application.resume_url)
        declared_type = application.resume_original_name or application.resume_url
        text, method, parsed_resume = await self._extract_and_structure(buffer, declared_type)
        validation = await self.validator.validate(text)

        updated = await self.application_repo.update(application_id, {
            'resume_raw_text': text,
            'parsed_data': parsed_resume.model_dump(mode='json', by_alias=True),
            **_validation_fields(validation),
        })

        logger.info(f"Re-parsed application via {method}", extra={"application_id": application_id})
        return updated
