"""Approval service: convert a reviewed application into a candidate"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from backend.app.core.exceptions import (
    AlreadyApproved,
    JobNotFound,
    NotFoundException,
    PipelineNotFound
)
from backend.app.core.logging import get_logger
from backend.app.models.application import Application, ApplicationStatus
from backend.app.models.candidate import Candidate
from backend.app.models.job import Job
from backend.app.models.pipeline import Pipeline
from backend.app.repositories.application_repository import ApplicationRepository
from backend.app.repositories.candidate_repository import CandidateRepository
from backend.app.repositories.job_repository import JobRepository
from backend.app.repositories.pipeline_repository import PipelineRepository
from backend.app.schemas.resume import ParsedResume
from backend.app.schemas.score import AIScore
from ml.inference.candidate_scorer import CandidateScorer
from ml.parsing.field_repair import (
    calculate_years_of_experience,
    filter_certifications,
    repair_education,
    repair_experience
)

logger = get_logger(__name__)


@dataclass
class ApprovalResult:
    """Candidate created by an approval and the updated application"""
    candidate: Candidate
    application: Application


def _stage_order(stage: Dict[str, Any]) -> float:
    order = stage.get('order')
    if isinstance(order, str):
        try:
            order = float(order.strip())
        except ValueError:
            return float('inf')
    if isinstance(order, bool) or not isinstance(order, (int, float)):
        return float('inf')
    if not math.isfinite(order):
        return float('inf')
    return float(order)


def select_initial_stage(stages: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    """
    First stage of a pipeline by ascending ``order``

    Ties keep their stored order. Numeric strings count as numbers; stages
    with any other order value sort last.
    """
    ordered = sorted(stages or [], key=_stage_order)
    return ordered[0] if ordered else None


def load_parsed_resume(application: Application) -> ParsedResume:
    """Parsed resume stored on an application; an unreadable record scores as empty"""
    try:
        return ParsedResume.model_validate(application.parsed_data or {})
    except ValidationError as e:
        logger.warning(
            f"Stored parsed resume is malformed ({e.error_count()} errors); scoring an empty resume",
            extra={"application_id": application.id}
        )
        return ParsedResume()


def build_candidate_data(
    application: Application,
    job: Job,
    parsed_resume: ParsedResume,
    ai_score: AIScore,
    pipeline: Optional[Pipeline],
    stage: Optional[Dict[str, Any]],
    reviewed_by: Optional[str],
    notes: Optional[str],
    now: datetime
) -> Dict[str, Any]:
    """
    Column values for a new candidate

    Every list is rebuilt, so the candidate shares no mutable state with the
    application's parsed data.
    """
    snapshot = parsed_resume.model_dump()
    experience = [repair_experience(entry) for entry in snapshot['experience']]
    education = [repair_education(entry) for entry in snapshot['education']]
    years = calculate_years_of_experience(experience, today=now.date())

    score_payload = ai_score.model_dump(mode='json', by_alias=True)

    return {
        'application_id': application.id,
        'job_id': job.id,
        'source': 'application',
        'created_by': reviewed_by,
        'first_name': application.first_name or '',
        'last_name': application.last_name or '',
        'email': application.email,
        'phone': application.phone,
        'resume_url': application.resume_url,
        'resume_original_name': application.resume_original_name,
        'summary': snapshot['summary'],
        'skills': [skill for skill in snapshot['skills'] if skill],
        'experience': experience,
        'education': education,
        'certifications': filter_certifications(snapshot['certifications']),
        'languages': list(snapshot['languages']),
        'years_of_experience': years if years > 0 else None,
        'pipeline_id': pipeline.id if pipeline else None,
        'current_pipeline_stage_id': str(stage['id']) if stage and stage.get('id') is not None else None,
        'ai_score': score_payload,
        'job_applications': [{
            'jobId': str(job.id),
            'applicationId': str(application.id),
            'status': 'active',
            'appliedAt': application.created_at.isoformat() if application.created_at else None,
            'lastStatusChange': now.isoformat(),
            'resumeScore': ai_score.overall_score,
        }],
        'status': 'active',
        'notes': notes if notes is not None else application.notes,
    }


class ApprovalService:
    """
    Approve applications into candidates

    Preconditions are checked and the score is computed before any write.
    The candidate insert and the application transition are committed
    together; the unique index on ``candidates.application_id`` settles
    concurrent approvals.
    """

    def __init__(
        self,
        application_repository: ApplicationRepository,
        candidate_repository: CandidateRepository,
        job_repository: JobRepository,
        pipeline_repository: PipelineRepository,
        scorer: Optional[CandidateScorer] = None
    ):
        self.application_repo = application_repository
        self.candidate_repo = candidate_repository
        self.job_repo = job_repository
        self.pipeline_repo = pipeline_repository
        self.scorer = scorer or CandidateScorer()

    async def _resolve_pipeline(self, job: Job, pipeline_id: Optional[UUID]) -> Optional[Pipeline]:
        if pipeline_id is not None:
            pipeline = await self.pipeline_repo.get_by_id(pipeline_id)
            if not pipeline:
                raise PipelineNotFound(pipeline_id)
            return pipeline

        if job.pipeline_id is None:
            return None

        pipeline = await self.pipeline_repo.get_by_id(job.pipeline_id)
        if not pipeline:
            logger.warning(
                f"Default pipeline {job.pipeline_id} of job {job.id} not found; candidate will be unstaged",
                extra={"job_id": job.id}
            )
        return pipeline

    async def approve(
        self,
        application_id: UUID,
        job_id: UUID,
        pipeline_id: Optional[UUID] = None,
        reviewed_by: Optional[str] = None,
        notes: Optional[str] = None
    ) -> ApprovalResult:
        """
        Approve an application and materialize its candidate

        Args:
            application_id: Application UUID
            job_id: Job the candidate is approved for
            pipeline_id: Explicit pipeline; defaults to the job's pipeline
            reviewed_by: Reviewer identifier
            notes: Candidate notes; defaults to the application's notes

        Returns:
            ApprovalResult with the new candidate and the approved application

        Raises:
            NotFoundException: If the application does not exist
            AlreadyApproved: If the application was approved before
            JobNotFound: If the job does not exist
            PipelineNotFound: If an explicit pipeline does not exist
            ScoringFailed: If scoring fails; nothing is written
        """
        application = await self.application_repo.get_by_id(application_id)
        if not application:
            raise NotFoundException(f"Application not found: {application_id}")

        if application.is_approved or await self.candidate_repo.get_by_application_id(application_id):
            raise AlreadyApproved(application_id)

        job = await self.job_repo.get_by_id(job_id)
        if not job:
            raise JobNotFound(job_id)

        pipeline = await self._resolve_pipeline(job, pipeline_id)
        stage = select_initial_stage(pipeline.stages) if pipeline else None
        if pipeline:
            logger.info(
                f"Initial stage for pipeline {pipeline.id}: {stage.get('name') if stage else 'none'}",
                extra={"application_id": application_id, "job_id": job_id}
            )

        parsed_resume = load_parsed_resume(application)
        ai_score = await self.scorer.score(parsed_resume, job.description or "", list(job.requirements or []))

        now = datetime.now(timezone.utc)
        candidate_data = build_candidate_data(
            application, job, parsed_resume, ai_score, pipeline, stage, reviewed_by, notes, now
        )

        update_data = {
            'status': ApplicationStatus.APPROVED,
            'approved_at': now,
            'reviewed_by': reviewed_by,
        }
        if application.job_id is None:
            update_data['job_id'] = job.id

        session = self.candidate_repo.session
        try:
            candidate = await self.candidate_repo.create(candidate_data, commit=False)
            application = await self.application_repo.update(application_id, update_data, commit=True)
        except IntegrityError:
            await session.rollback()
            logger.warning(
                "Concurrent approval lost the race on the candidate unique index",
                extra={"application_id": application_id}
            )
            raise AlreadyApproved(application_id)

        await session.refresh(candidate)

        logger.info(
            f"Approved application into candidate {candidate.id} with score {ai_score.overall_score}",
            extra={"application_id": application_id, "candidate_id": candidate.id, "job_id": job_id}
        )
        return ApprovalResult(candidate=candidate, application=application)
