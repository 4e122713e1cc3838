"""Database models"""

from backend.app.models.base import TimestampMixin
from backend.app.models.application import Application, ApplicationStatus, ApplicationSource
from backend.app.models.job import Job, JobStatus
from backend.app.models.pipeline import Pipeline
from backend.app.models.candidate import Candidate

__all__ = [
    "TimestampMixin",
    "Application",
    "ApplicationStatus",
    "ApplicationSource",
    "Job",
    "JobStatus",
    "Pipeline",
    "Candidate",
]
