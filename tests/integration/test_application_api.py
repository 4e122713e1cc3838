"""Integration tests for the resume and application API"""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.applications import get_approval_service
from backend.app.api.resumes import get_resume_service
from backend.app.core.database import get_db
from backend.app.core.exceptions import ExtractionExhausted
from backend.app.core.security import UserRole, create_access_token
from backend.app.main import app
from backend.app.models import Application
from backend.app.repositories import (
    ApplicationRepository,
    CandidateRepository,
    JobRepository,
    PipelineRepository
)
from backend.app.schemas.resume import ParsedResume, ParseResumeResponse
from backend.app.services.approval_service import ApprovalService
from backend.app.services.resume_service import ResumeService
from backend.app.services.s3_service import S3Service
from ml.inference.candidate_scorer import CandidateScorer
from tests.factories import (
    SAMPLE_PARSED_DATA,
    SAMPLE_RESUME_TEXT,
    create_test_application,
    create_test_job,
    create_test_pipeline,
    make_ai_score
)

PDF_UPLOAD = {"file": ("resume.pdf", b"%PDF-1.4 resume", "application/pdf")}


def auth_headers(role: UserRole = UserRole.RECRUITER) -> dict:
    return {"Authorization": f"Bearer {create_access_token('user-1', role)}"}


@pytest.fixture
def resume_service():
    service = Mock(spec=ResumeService)
    service.parse_resume = AsyncMock()
    service.create_application_from_resume = AsyncMock()
    service.reparse_application = AsyncMock()
    return service


@pytest.fixture
def scorer():
    mock = Mock(spec=CandidateScorer)
    mock.score = AsyncMock(return_value=make_ai_score())
    return mock


@pytest.fixture
async def client(test_session_factory, resume_service, scorer):
    """HTTP client against the app with storage and oracle dependencies replaced"""

    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    async def override_resume_service(db: AsyncSession = Depends(get_db)):
        return resume_service

    async def override_approval_service(db: AsyncSession = Depends(get_db)):
        return ApprovalService(
            ApplicationRepository(db),
            CandidateRepository(db),
            JobRepository(db),
            PipelineRepository(db),
            scorer=scorer
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_resume_service] = override_resume_service
    app.dependency_overrides[get_approval_service] = override_approval_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()


class TestAuthentication:
    """Access control on resume endpoints"""

    async def test_missing_token(self, client):
        response = await client.post("/api/v1/resumes/parse", files=PDF_UPLOAD)

        assert response.status_code in (401, 403)

    async def test_hiring_manager_cannot_parse(self, client):
        response = await client.post(
            "/api/v1/resumes/parse",
            files=PDF_UPLOAD,
            headers=auth_headers(UserRole.HIRING_MANAGER)
        )

        assert response.status_code == 403

    async def test_health_is_public(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert "X-Request-ID" in response.headers


class TestResumeParsing:
    """POST /api/v1/resumes/parse"""

    async def test_parse(self, client, resume_service):
        resume_service.parse_resume.return_value = ParseResumeResponse(
            parsed_resume=ParsedResume.model_validate(SAMPLE_PARSED_DATA),
            extracted_text=SAMPLE_RESUME_TEXT,
            extraction_method="pdf"
        )

        response = await client.post("/api/v1/resumes/parse", files=PDF_UPLOAD, headers=auth_headers())

        assert response.status_code == 200
        body = response.json()
        assert body["extraction_method"] == "pdf"
        assert body["parsed_resume"]["skills"] == ["Python", "PostgreSQL", "AWS"]
        buffer, filename = resume_service.parse_resume.await_args.args
        assert buffer == b"%PDF-1.4 resume"
        assert filename == "resume.pdf"

    async def test_unsupported_type(self, client, test_session_factory):
        async def real_resume_service(db: AsyncSession = Depends(get_db)):
            return ResumeService(ApplicationRepository(db), Mock(), JobRepository(db))

        app.dependency_overrides[get_resume_service] = real_resume_service

        response = await client.post(
            "/api/v1/resumes/parse",
            files={"file": ("notes.txt", b"plain text", "text/plain")},
            headers=auth_headers()
        )

        assert response.status_code == 400
        assert response.json()["details"]["declared_type"] == "notes.txt"

    async def test_unreadable_file(self, client, resume_service):
        resume_service.parse_resume.side_effect = ExtractionExhausted({"pdf": "no text layer"})

        response = await client.post(
            "/api/v1/resumes/parse",
            files=PDF_UPLOAD,
            headers={**auth_headers(), "X-Request-ID": "req-123"}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == ExtractionExhausted.USER_MESSAGE
        assert body["details"]["attempts"] == {"pdf": "no text layer"}
        assert body["request_id"] == "req-123"


class TestApplications:
    """Application intake, lookup and approval"""

    async def test_create_from_resume(self, client, resume_service, test_session_factory):
        async with test_session_factory() as session:
            job = await create_test_job(session)
            application = await create_test_application(session, job=job)
        resume_service.create_application_from_resume.return_value = application

        response = await client.post(
            "/api/v1/applications/parse",
            files=PDF_UPLOAD,
            data={"job_id": str(job.id), "email": "fallback@example.com", "source": "email_automation"},
            headers=auth_headers()
        )

        assert response.status_code == 201
        assert response.json()["id"] == str(application.id)
        kwargs = resume_service.create_application_from_resume.await_args.kwargs
        assert kwargs["job_id"] == job.id
        assert kwargs["email"] == "fallback@example.com"
        assert kwargs["source"] == "email_automation"
        assert kwargs["content_type"] == "application/pdf"

    async def test_create_for_unknown_job(self, client, test_session_factory):
        storage = Mock(spec=S3Service)

        async def real_resume_service(db: AsyncSession = Depends(get_db)):
            return ResumeService(ApplicationRepository(db), storage, JobRepository(db))

        app.dependency_overrides[get_resume_service] = real_resume_service
        job_id = uuid4()

        response = await client.post(
            "/api/v1/applications/parse",
            files=PDF_UPLOAD,
            data={"job_id": str(job_id), "email": "jane@example.com"},
            headers=auth_headers()
        )

        assert response.status_code == 404
        assert str(job_id) in response.json()["error"]
        storage.upload_resume.assert_not_called()
        async with test_session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(Application))
        assert count == 0

    async def test_get_application(self, client, test_session_factory):
        async with test_session_factory() as session:
            application = await create_test_application(session)

        response = await client.get(
            f"/api/v1/applications/{application.id}",
            headers=auth_headers(UserRole.HIRING_MANAGER)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["parsed_data"]["personalInfo"]["firstName"] == "Jane"

    async def test_get_missing_application(self, client):
        response = await client.get(f"/api/v1/applications/{uuid4()}", headers=auth_headers())

        assert response.status_code == 404

    async def test_approve_then_conflict(self, client, test_session_factory, scorer):
        async with test_session_factory() as session:
            pipeline = await create_test_pipeline(session)
            job = await create_test_job(session, pipeline=pipeline)
            application = await create_test_application(session, job=job)

        url = f"/api/v1/applications/{application.id}/approve"
        body = {"job_id": str(job.id), "notes": "Strong payments background"}

        first = await client.post(url, json=body, headers=auth_headers())

        assert first.status_code == 201
        payload = first.json()
        assert payload["application"]["status"] == "approved"
        assert payload["application"]["reviewed_by"] == "user-1"
        assert payload["candidate"]["current_pipeline_stage_id"] == "stage-applied"
        assert payload["candidate"]["notes"] == "Strong payments background"
        assert payload["candidate"]["created_by"] == "user-1"

        second = await client.post(url, json=body, headers=auth_headers())

        assert second.status_code == 409
        error = second.json()
        assert "error" in error
        assert error["request_id"]
        assert scorer.score.await_count == 1

    async def test_approve_unknown_job(self, client, test_session_factory):
        async with test_session_factory() as session:
            application = await create_test_application(session)

        response = await client.post(
            f"/api/v1/applications/{application.id}/approve",
            json={"job_id": str(uuid4())},
            headers=auth_headers()
        )

        assert response.status_code == 404

    async def test_approve_requires_recruiter(self, client, test_session_factory):
        async with test_session_factory() as session:
            application = await create_test_application(session)

        response = await client.post(
            f"/api/v1/applications/{application.id}/approve",
            json={"job_id": str(uuid4())},
            headers=auth_headers(UserRole.HIRING_MANAGER)
        )

        assert response.status_code == 403
