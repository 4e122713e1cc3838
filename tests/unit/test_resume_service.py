"""Unit tests for resume ingestion"""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    ConflictException,
    ExtractionExhausted,
    JobNotFound,
    NotFoundException,
    UnsupportedFileType,
    ValidationException
)
from backend.app.models.application import Application, ApplicationSource, ApplicationStatus
from backend.app.models.job import Job
from backend.app.repositories.application_repository import ApplicationRepository
from backend.app.repositories.job_repository import JobRepository
from backend.app.schemas.resume import ParsedResume, ValidationResult
from backend.app.services.resume_service import ResumeService
from backend.app.services.s3_service import S3Service
from ml.inference.resume_structurer import ResumeStructurer
from ml.inference.resume_validator import ResumeValidator
from ml.parsing.extraction_orchestrator import ExtractionOrchestrator
from ml.parsing.text_extractor import ExtractionAttempt
from tests.factories import SAMPLE_PARSED_DATA, SAMPLE_RESUME_TEXT


@pytest.fixture
def application_repo():
    repo = Mock(spec=ApplicationRepository)
    repo.find_open_by_job_and_email = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda data: Application(id=uuid4(), **data))
    repo.get_by_id = AsyncMock(return_value=None)
    repo.update = AsyncMock(side_effect=lambda application_id, data: Application(id=application_id, **data))
    return repo


@pytest.fixture
def s3_service():
    s3 = Mock(spec=S3Service)
    s3.upload_resume = AsyncMock(return_value="s3://hireline-resumes/resumes/abc/resume.pdf")
    s3.fetch_resume = AsyncMock(return_value=b"%PDF stored")
    s3.delete_resume = AsyncMock(return_value=True)
    return s3


@pytest.fixture
def orchestrator():
    orchestrator = Mock(spec=ExtractionOrchestrator)
    orchestrator.extract_detailed = AsyncMock(
        return_value=ExtractionAttempt(method="native", text=SAMPLE_RESUME_TEXT)
    )
    return orchestrator


@pytest.fixture
def structurer():
    structurer = Mock(spec=ResumeStructurer)
    structurer.structure = AsyncMock(return_value=ParsedResume.model_validate(SAMPLE_PARSED_DATA))
    return structurer


@pytest.fixture
def validator():
    validator = Mock(spec=ResumeValidator)
    validator.validate = AsyncMock(return_value=ValidationResult(is_valid=True, score=91, reason="Looks genuine"))
    return validator


@pytest.fixture
def job_repo():
    repo = Mock(spec=JobRepository)
    repo.get_by_id = AsyncMock(
        side_effect=lambda job_id: Job(id=job_id, title="Senior Backend Engineer", client_id="client-7")
    )
    return repo


@pytest.fixture
def service(application_repo, s3_service, job_repo, orchestrator, structurer, validator):
    return ResumeService(
        application_repo,
        s3_service,
        job_repo,
        orchestrator=orchestrator,
        structurer=structurer,
        validator=validator
    )


class TestParseResume:
    """Test parse-only requests"""

    async def test_returns_parsed_resume_and_text(self, service, application_repo, s3_service):
        response = await service.parse_resume(b"%PDF-1.4", "resume.pdf")

        assert response.extraction_method == "native"
        assert response.extracted_text == SAMPLE_RESUME_TEXT
        assert response.parsed_resume.personal_info.last_name == "Smith"
        application_repo.create.assert_not_awaited()
        s3_service.upload_resume.assert_not_awaited()

    async def test_unsupported_extension(self, service, orchestrator):
        with pytest.raises(UnsupportedFileType):
            await service.parse_resume(b"hello", "resume.txt")

        orchestrator.extract_detailed.assert_not_awaited()

    async def test_empty_upload(self, service):
        with pytest.raises(ValidationException):
            await service.parse_resume(b"", "resume.pdf")

    async def test_oversized_upload(self, service):
        with pytest.raises(ValidationException) as exc_info:
            await service.parse_resume(b"x" * (settings.MAX_UPLOAD_SIZE + 1), "resume.pdf")

        assert "too large" in exc_info.value.message

    async def test_extraction_failure_propagates(self, service, orchestrator, structurer):
        orchestrator.extract_detailed.side_effect = ExtractionExhausted({"native": "corrupt"})

        with pytest.raises(ExtractionExhausted):
            await service.parse_resume(b"%PDF", "resume.pdf")

        structurer.structure.assert_not_awaited()


class TestCreateApplicationFromResume:
    """Test application intake"""

    async def test_creates_pending_application(self, service, application_repo, s3_service):
        job_id = uuid4()

        application = await service.create_application_from_resume(
            b"%PDF-1.4", "Jane Resume.pdf", content_type="application/pdf", job_id=job_id
        )

        assert application.status == ApplicationStatus.PENDING
        assert application.source == ApplicationSource.DIRECT_APPLY
        assert application.first_name == "Jane"
        assert application.email == "jane.smith@example.com"
        assert application.job_id == job_id
        assert application.resume_url == "s3://hireline-resumes/resumes/abc/resume.pdf"
        assert application.resume_raw_text == SAMPLE_RESUME_TEXT
        assert application.parsed_data["personalInfo"]["firstName"] == "Jane"
        assert (application.is_valid_resume, application.validation_score) == (True, 91)
        application_repo.find_open_by_job_and_email.assert_awaited_once_with(job_id, "jane.smith@example.com")

    async def test_placeholder_identity_falls_back_to_caller(self, service, structurer):
        structurer.structure.return_value = ParsedResume.model_validate({
            **SAMPLE_PARSED_DATA,
            "personalInfo": {"firstName": "John", "lastName": "Doe", "email": "N/A"}
        })

        application = await service.create_application_from_resume(
            b"%PDF", "resume.pdf", first_name="Ada", last_name="Lovelace", email="Ada@Example.com"
        )

        assert (application.first_name, application.last_name) == ("Ada", "Lovelace")
        assert application.email == "ada@example.com"

    async def test_email_required(self, service, structurer, application_repo):
        structurer.structure.return_value = ParsedResume.model_validate({"summary": "No contact details"})

        with pytest.raises(ValidationException):
            await service.create_application_from_resume(b"%PDF", "resume.pdf")

        application_repo.create.assert_not_awaited()

    async def test_duplicate_open_application(self, service, application_repo, s3_service):
        application_repo.find_open_by_job_and_email.return_value = Application(id=uuid4())

        with pytest.raises(ConflictException):
            await service.create_application_from_resume(b"%PDF", "resume.pdf", job_id=uuid4())

        s3_service.upload_resume.assert_not_awaited()
        application_repo.create.assert_not_awaited()

    async def test_validation_unavailable_leaves_triad_null(self, service, validator):
        validator.validate.return_value = None

        application = await service.create_application_from_resume(b"%PDF", "resume.pdf")

        assert application.is_valid_resume is None
        assert application.validation_score is None
        assert application.validation_reason is None

    async def test_unknown_job_rejected_before_parsing(self, service, job_repo, orchestrator, s3_service):
        job_repo.get_by_id.side_effect = None
        job_repo.get_by_id.return_value = None

        with pytest.raises(JobNotFound):
            await service.create_application_from_resume(b"%PDF", "resume.pdf", job_id=uuid4())

        orchestrator.extract_detailed.assert_not_awaited()
        s3_service.upload_resume.assert_not_awaited()

    async def test_client_defaults_to_job_client(self, service):
        application = await service.create_application_from_resume(b"%PDF", "resume.pdf", job_id=uuid4())

        assert application.client_id == "client-7"

    async def test_explicit_client_kept(self, service):
        application = await service.create_application_from_resume(
            b"%PDF", "resume.pdf", job_id=uuid4(), client_id="client-1"
        )

        assert application.client_id == "client-1"

    async def test_unassigned_application_skips_job_lookup(self, service, job_repo):
        application = await service.create_application_from_resume(b"%PDF", "resume.pdf")

        assert application.job_id is None
        job_repo.get_by_id.assert_not_awaited()

    async def test_failed_insert_removes_upload(self, service, application_repo, s3_service):
        application_repo.create.side_effect = IntegrityError("INSERT INTO applications", {}, Exception("unique"))

        with pytest.raises(IntegrityError):
            await service.create_application_from_resume(b"%PDF", "resume.pdf", job_id=uuid4())

        s3_service.delete_resume.assert_awaited_once_with("s3://hireline-resumes/resumes/abc/resume.pdf")


class TestReparseApplication:
    """Test re-parsing stored resumes"""

    async def test_reparse(self, service, application_repo, s3_service, orchestrator):
        stored = Application(
            id=uuid4(),
            status=ApplicationStatus.PENDING,
            resume_url="s3://hireline-resumes/resumes/abc/resume.pdf",
            resume_original_name="resume.pdf"
        )
        application_repo.get_by_id.return_value = stored

        updated = await service.reparse_application(stored.id)

        s3_service.fetch_resume.assert_awaited_once_with(stored.resume_url)
        assert orchestrator.extract_detailed.await_args.args == (b"%PDF stored", "resume.pdf")
        assert updated.resume_raw_text == SAMPLE_RESUME_TEXT
        assert updated.validation_score == 91

    async def test_missing_application(self, service):
        with pytest.raises(NotFoundException):
            await service.reparse_application(uuid4())

    async def test_approved_application_is_immutable(self, service, application_repo, s3_service):
        application_repo.get_by_id.return_value = Application(
            id=uuid4(), status=ApplicationStatus.APPROVED, resume_url="s3://b/k.pdf"
        )

        with pytest.raises(ConflictException):
            await service.reparse_application(uuid4())

        s3_service.fetch_resume.assert_not_awaited()

    async def test_missing_resume_file(self, service, application_repo):
        application_repo.get_by_id.return_value = Application(id=uuid4(), status=ApplicationStatus.PENDING)

        with pytest.raises(NotFoundException):
            await service.reparse_application(uuid4())
