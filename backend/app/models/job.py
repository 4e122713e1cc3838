"""Job model"""

from sqlalchemy import Column, String, Text, Uuid
from backend.app.core.database import Base
from backend.app.models.base import TimestampMixin, JSONType, enum_column_type
import uuid
import enum


class JobStatus(str, enum.Enum):
    """Job status enumeration"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


class Job(Base, TimestampMixin):
    """Job posting; only the fields the scoring path reads are modelled here"""

    __tablename__ = "jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    requirements = Column(JSONType, nullable=False, default=list)  # ordered list of strings
    client_id = Column(String(64), nullable=True)
    pipeline_id = Column(Uuid, nullable=True)  # default pipeline for approved candidates
    status = Column(enum_column_type(JobStatus), nullable=False, default=JobStatus.ACTIVE, index=True)

    def __repr__(self):
        return f"<Job(id={self.id}, title={self.title}, status={self.status})>"
