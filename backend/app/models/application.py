"""Application model"""

from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, Index, Uuid, text
from backend.app.core.database import Base
from backend.app.models.base import TimestampMixin, JSONType, enum_column_type
import uuid
import enum


class ApplicationStatus(str, enum.Enum):
    """Application review status"""
    PENDING = "pending"
    REVIEWING = "reviewing"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    APPROVED = "approved"


class ApplicationSource(str, enum.Enum):
    """How the application entered the system"""
    MANUAL = "manual"
    DIRECT_APPLY = "direct_apply"
    EMAIL_AUTOMATION = "email_automation"


class Application(Base, TimestampMixin):
    """A submission for a job (or unassigned) awaiting review"""

    __tablename__ = "applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid, nullable=True, index=True)  # null = unassigned
    client_id = Column(String(64), nullable=True)

    # Identity
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)

    # Resume
    resume_url = Column(String(1000), nullable=True)
    resume_original_name = Column(String(500), nullable=True)
    resume_raw_text = Column(Text, nullable=True)
    parsed_data = Column(JSONType, nullable=True)

    # AI validation triad, all set or all null
    is_valid_resume = Column(Boolean, nullable=True)
    validation_score = Column(Integer, nullable=True)
    validation_reason = Column(Text, nullable=True)

    status = Column(
        enum_column_type(ApplicationStatus),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True
    )
    source = Column(enum_column_type(ApplicationSource), nullable=False, default=ApplicationSource.MANUAL)
    notes = Column(Text, nullable=True)

    # Review
    reviewed_by = Column(String(64), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # One open application per (job, email)
        Index(
            "uq_applications_open_job_email",
            "job_id",
            "email",
            unique=True,
            postgresql_where=text("status <> 'approved'"),
            sqlite_where=text("status <> 'approved'"),
        ),
    )

    @property
    def is_approved(self) -> bool:
        return self.status == ApplicationStatus.APPROVED

    def __repr__(self):
        return f"<Application(id={self.id}, email={self.email}, status={self.status})>"
