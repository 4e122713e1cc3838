"""Custom exception classes"""

from typing import Any, Optional


class HirelineException(Exception):
    """Base exception for the ATS backend"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(HirelineException):
    """Exception for validation errors"""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundException(HirelineException):
    """Exception for resource not found errors"""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ConflictException(HirelineException):
    """Exception for resource conflict errors"""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, status_code=409, details=details)


class ExternalServiceException(HirelineException):
    """Exception for external service errors"""

    def __init__(self, service: str, message: str):
        self.service = service
        full_message = f"External service error ({service}): {message}"
        super().__init__(full_message, status_code=502)


# Resume pipeline

class ResumePipelineException(HirelineException):
    """Base class for failures inside the resume ingestion pipeline"""


class UnsupportedFileType(ValidationException):
    """Declared file type has no extraction tier"""

    def __init__(self, declared_type: str):
        super().__init__(
            f"Unsupported file type: {declared_type}. Supported formats: .pdf, .doc, .docx",
            details={"declared_type": declared_type}
        )


class ExtractionExhausted(ResumePipelineException):
    """Every text-extraction tier failed or produced too little text"""

    USER_MESSAGE = "This file could not be read. It is likely corrupted or an unsupported scan."

    def __init__(self, errors: Optional[dict[str, str]] = None):
        super().__init__(
            self.USER_MESSAGE,
            status_code=422,
            details={"attempts": errors or {}}
        )


class StructuringFailed(ResumePipelineException):
    """Oracle could not turn resume text into a structured record"""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(f"Failed to parse resume: {message}", status_code=status_code)


class InsufficientResumeText(StructuringFailed):
    """Resume text is below the minimum length worth structuring"""

    def __init__(self, length: int, minimum: int):
        super().__init__(
            f"extracted text too short ({length} chars, minimum {minimum})",
            status_code=422
        )
        self.details = {"length": length, "minimum": minimum}


class ValidationUnavailable(ResumePipelineException):
    """Resume quality check could not be performed; advisory only"""

    def __init__(self, message: str):
        super().__init__(f"Resume validation unavailable: {message}", status_code=503)


class ScoringFailed(ResumePipelineException):
    """Oracle scoring call failed or returned an unusable score"""

    def __init__(self, message: str):
        super().__init__(f"Failed to score candidate: {message}", status_code=502)


class OracleUnavailable(ExternalServiceException):
    """Language model oracle is not configured or did not answer"""

    def __init__(self, message: str):
        super().__init__("oracle", message)


# Approval preconditions

class AlreadyApproved(ConflictException):
    """Application has already been converted into a candidate"""

    def __init__(self, application_id: Any):
        super().__init__(
            "Application has already been approved",
            details={"application_id": str(application_id)}
        )


class JobNotFound(NotFoundException):
    """Target job for approval does not exist"""

    def __init__(self, job_id: Any):
        super().__init__(f"Job not found: {job_id}")


class PipelineNotFound(NotFoundException):
    """Explicitly requested pipeline does not exist"""

    def __init__(self, pipeline_id: Any):
        super().__init__(f"Pipeline not found: {pipeline_id}")
