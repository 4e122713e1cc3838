"""Data access layer"""

from backend.app.repositories.application_repository import ApplicationRepository
from backend.app.repositories.candidate_repository import CandidateRepository
from backend.app.repositories.job_repository import JobRepository
from backend.app.repositories.pipeline_repository import PipelineRepository

__all__ = ['ApplicationRepository', 'CandidateRepository', 'JobRepository', 'PipelineRepository']
