"""Unit tests for application approval"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from backend.app.core.exceptions import (
    AlreadyApproved,
    JobNotFound,
    NotFoundException,
    PipelineNotFound,
    ScoringFailed
)
from backend.app.models.application import Application, ApplicationSource, ApplicationStatus
from backend.app.models.candidate import Candidate
from backend.app.models.job import Job
from backend.app.models.pipeline import Pipeline
from backend.app.repositories.application_repository import ApplicationRepository
from backend.app.repositories.candidate_repository import CandidateRepository
from backend.app.repositories.job_repository import JobRepository
from backend.app.repositories.pipeline_repository import PipelineRepository
from backend.app.schemas.resume import ParsedResume
from backend.app.services.approval_service import (
    ApprovalService,
    build_candidate_data,
    load_parsed_resume,
    select_initial_stage
)
from ml.inference.candidate_scorer import CandidateScorer
from tests.factories import SAMPLE_PARSED_DATA, make_ai_score


def make_application(**overrides) -> Application:
    values = dict(
        id=uuid4(),
        job_id=None,
        first_name="Jane",
        last_name="Smith",
        email="jane.smith@example.com",
        phone="+1 555 0100",
        resume_url="s3://hireline-resumes/resumes/jane.pdf",
        resume_original_name="jane.pdf",
        parsed_data=SAMPLE_PARSED_DATA,
        status=ApplicationStatus.PENDING,
        source=ApplicationSource.DIRECT_APPLY,
        notes="Application notes",
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Application(**values)


def make_job(pipeline_id=None) -> Job:
    return Job(
        id=uuid4(),
        title="Backend Engineer",
        description="Python services",
        requirements=["Python", "AWS"],
        pipeline_id=pipeline_id
    )


class TestSelectInitialStage:
    """Test initial pipeline stage selection"""

    def test_lowest_order_wins(self):
        stages = [{"id": "b", "name": "B", "order": 2}, {"id": "a", "name": "A", "order": 1}]
        assert select_initial_stage(stages)["name"] == "A"

    def test_ties_keep_stored_order(self):
        stages = [{"id": "x", "order": 1}, {"id": "y", "order": 1}]
        assert select_initial_stage(stages)["id"] == "x"

    def test_missing_order_sorts_last(self):
        stages = [{"id": "x"}, {"id": "y", "order": 5}]
        assert select_initial_stage(stages)["id"] == "y"

    def test_numeric_string_orders(self):
        stages = [{"id": "b", "order": "2"}, {"id": "a", "order": " 1 "}]
        assert select_initial_stage(stages)["id"] == "a"

    @pytest.mark.parametrize("order", ["first", True, float("nan"), None])
    def test_non_numeric_order_sorts_last(self, order):
        stages = [{"id": "x", "order": order}, {"id": "y", "order": "3"}]
        assert select_initial_stage(stages)["id"] == "y"

    def test_empty_pipeline(self):
        assert select_initial_stage([]) is None
        assert select_initial_stage(None) is None


class TestBuildCandidateData:
    """Test candidate materialization"""

    def test_snapshot_is_repaired(self):
        application = make_application()
        job = make_job()
        pipeline = Pipeline(id=uuid4(), name="Default", stages=[])
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)

        data = build_candidate_data(
            application, job, load_parsed_resume(application), make_ai_score(), pipeline,
            {"id": "stage-1", "name": "Applied", "order": 1}, "recruiter-1", None, now
        )

        assert data["certifications"] == ["AWS Certified Solutions Architect"]
        assert data["experience"][1]["company"] == "Globex Industries"
        assert data["education"][0]["field"] == "Computer Science"
        # 23 months + 35 months
        assert data["years_of_experience"] == 4.8
        assert data["current_pipeline_stage_id"] == "stage-1"
        assert data["pipeline_id"] == pipeline.id
        assert data["notes"] == "Application notes"
        assert data["created_by"] == "recruiter-1"
        assert data["ai_score"]["overallScore"] == 82
        assert data["job_applications"] == [{
            "jobId": str(job.id),
            "applicationId": str(application.id),
            "status": "active",
            "appliedAt": "2024-05-01T00:00:00+00:00",
            "lastStatusChange": "2024-06-01T00:00:00+00:00",
            "resumeScore": 82.0,
        }]

    def test_snapshot_shares_no_state_with_application(self):
        application = make_application()
        data = build_candidate_data(
            application, make_job(), load_parsed_resume(application), make_ai_score(),
            None, None, None, "Request notes", datetime.now(timezone.utc)
        )

        data["skills"].append("Go")
        data["experience"][0]["title"] = "Changed"

        assert application.parsed_data["skills"] == ["Python", "PostgreSQL", "AWS"]
        assert application.parsed_data["experience"][0]["title"] == "Senior Engineer"
        assert data["notes"] == "Request notes"
        assert data["current_pipeline_stage_id"] is None

    def test_zero_experience_left_unset(self):
        application = make_application(parsed_data={"experience": [{"duration": "recently"}]})
        data = build_candidate_data(
            application, make_job(), load_parsed_resume(application), make_ai_score(),
            None, None, None, None, datetime.now(timezone.utc)
        )

        assert data["years_of_experience"] is None

    def test_malformed_parsed_data_scores_as_empty(self):
        application = make_application(parsed_data={"skills": "not a list"})

        assert load_parsed_resume(application) == ParsedResume()


class TestApprovalService:
    """Test approval orchestration with mocked collaborators"""

    @pytest.fixture
    def application(self):
        return make_application()

    @pytest.fixture
    def pipeline(self):
        return Pipeline(
            id=uuid4(),
            name="Engineering",
            stages=[{"id": "b", "name": "B", "order": 2}, {"id": "a", "name": "A", "order": 1}]
        )

    @pytest.fixture
    def job(self, pipeline):
        return make_job(pipeline_id=pipeline.id)

    @pytest.fixture
    def repos(self, application, job, pipeline):
        application_repo = Mock(spec=ApplicationRepository)
        application_repo.get_by_id = AsyncMock(return_value=application)
        application_repo.update = AsyncMock(return_value=application)

        candidate_repo = Mock(spec=CandidateRepository)
        candidate_repo.get_by_application_id = AsyncMock(return_value=None)
        candidate_repo.create = AsyncMock(side_effect=lambda data, commit=True: Candidate(id=uuid4(), **data))
        candidate_repo.session = AsyncMock()

        job_repo = Mock(spec=JobRepository)
        job_repo.get_by_id = AsyncMock(return_value=job)

        pipeline_repo = Mock(spec=PipelineRepository)
        pipeline_repo.get_by_id = AsyncMock(return_value=pipeline)

        return application_repo, candidate_repo, job_repo, pipeline_repo

    @pytest.fixture
    def scorer(self):
        scorer = Mock(spec=CandidateScorer)
        scorer.score = AsyncMock(return_value=make_ai_score())
        return scorer

    @pytest.fixture
    def service(self, repos, scorer):
        return ApprovalService(*repos, scorer=scorer)

    async def test_approve(self, service, repos, scorer, application, job):
        application_repo, candidate_repo, _, _ = repos

        result = await service.approve(application.id, job.id, reviewed_by="recruiter-1", notes="Fast track")

        assert result.candidate.current_pipeline_stage_id == "a"
        assert result.candidate.notes == "Fast track"
        assert candidate_repo.create.await_args.kwargs == {"commit": False}

        update_args = application_repo.update.await_args
        assert update_args.args[1]["status"] == ApplicationStatus.APPROVED
        assert update_args.args[1]["reviewed_by"] == "recruiter-1"
        assert update_args.args[1]["job_id"] == job.id
        assert update_args.kwargs == {"commit": True}

        scored_resume, description, requirements = scorer.score.await_args.args
        assert scored_resume.skills == ["Python", "PostgreSQL", "AWS"]
        assert description == "Python services"
        assert requirements == ["Python", "AWS"]

    async def test_missing_application(self, service, repos):
        repos[0].get_by_id.return_value = None

        with pytest.raises(NotFoundException):
            await service.approve(uuid4(), uuid4())

    async def test_approved_status_rejected_before_any_write(self, service, repos, scorer, application, job):
        application.status = ApplicationStatus.APPROVED

        with pytest.raises(AlreadyApproved):
            await service.approve(application.id, job.id)

        scorer.score.assert_not_awaited()
        repos[1].create.assert_not_awaited()
        repos[0].update.assert_not_awaited()

    async def test_existing_candidate_rejected(self, service, repos, scorer, application, job):
        repos[1].get_by_application_id.return_value = Candidate(id=uuid4())

        with pytest.raises(AlreadyApproved):
            await service.approve(application.id, job.id)

        scorer.score.assert_not_awaited()

    async def test_job_not_found(self, service, repos, application):
        repos[2].get_by_id.return_value = None

        with pytest.raises(JobNotFound) as exc_info:
            await service.approve(application.id, uuid4())

        assert exc_info.value.status_code == 404

    async def test_explicit_pipeline_not_found(self, service, repos, application, job):
        repos[3].get_by_id.return_value = None

        with pytest.raises(PipelineNotFound):
            await service.approve(application.id, job.id, pipeline_id=uuid4())

        repos[1].create.assert_not_awaited()

    async def test_missing_default_pipeline_leaves_candidate_unstaged(self, service, repos, application, job):
        repos[3].get_by_id.return_value = None

        result = await service.approve(application.id, job.id)

        assert result.candidate.pipeline_id is None
        assert result.candidate.current_pipeline_stage_id is None

    async def test_explicit_pipeline_overrides_job_default(self, service, repos, application, job):
        other = Pipeline(id=uuid4(), name="Sales", stages=[{"id": "s1", "name": "Intro", "order": 0}])
        repos[3].get_by_id.return_value = other

        result = await service.approve(application.id, job.id, pipeline_id=other.id)

        repos[3].get_by_id.assert_awaited_once_with(other.id)
        assert result.candidate.current_pipeline_stage_id == "s1"

    async def test_scoring_failure_writes_nothing(self, service, repos, scorer, application, job):
        scorer.score.side_effect = ScoringFailed("timeout")

        with pytest.raises(ScoringFailed):
            await service.approve(application.id, job.id)

        repos[1].create.assert_not_awaited()
        repos[0].update.assert_not_awaited()
        assert application.status == ApplicationStatus.PENDING

    async def test_unique_index_violation_reported_as_already_approved(self, service, repos, application, job):
        repos[1].create.side_effect = IntegrityError("INSERT INTO candidates", {}, Exception("UNIQUE constraint failed"))

        with pytest.raises(AlreadyApproved):
            await service.approve(application.id, job.id)

        repos[1].session.rollback.assert_awaited_once()
        repos[0].update.assert_not_awaited()
