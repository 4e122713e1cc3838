"""Candidate model"""

from sqlalchemy import Column, String, Float, Text, Uuid, ForeignKey
from backend.app.core.database import Base
from backend.app.models.base import TimestampMixin, JSONType
import uuid


class Candidate(Base, TimestampMixin):
    """Hiring-pipeline subject materialized from an approved application"""

    __tablename__ = "candidates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Provenance; unique index is the authoritative one-candidate-per-application guard
    application_id = Column(Uuid, ForeignKey("applications.id"), nullable=False, unique=True, index=True)
    job_id = Column(Uuid, ForeignKey("jobs.id"), nullable=False, index=True)
    source = Column(String(50), nullable=False, default="application")
    created_by = Column(String(64), nullable=True)

    # Identity snapshot
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    resume_url = Column(String(1000), nullable=True)
    resume_original_name = Column(String(500), nullable=True)

    # Resume snapshot (independent copy of the application's parsed data)
    summary = Column(Text, nullable=True)
    skills = Column(JSONType, nullable=False, default=list)
    experience = Column(JSONType, nullable=False, default=list)
    education = Column(JSONType, nullable=False, default=list)
    certifications = Column(JSONType, nullable=False, default=list)
    languages = Column(JSONType, nullable=False, default=list)
    years_of_experience = Column(Float, nullable=True)

    # Pipeline placement; null stage = not yet staged
    pipeline_id = Column(Uuid, nullable=True)
    current_pipeline_stage_id = Column(String(64), nullable=True, index=True)

    ai_score = Column(JSONType, nullable=True)
    job_applications = Column(JSONType, nullable=False, default=list)
    status = Column(String(50), nullable=False, default="active")
    notes = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Candidate(id={self.id}, email={self.email}, application_id={self.application_id})>"
