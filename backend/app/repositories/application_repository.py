"""Application repository for database operations"""

from typing import Optional, Dict, Any
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.application import Application, ApplicationStatus
from backend.app.core.logging import get_logger

logger = get_logger(__name__)


class ApplicationRepository:
    """Repository for application database operations"""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository

        Args:
            session: Database session
        """
        self.session = session

    async def create(self, application_data: Dict[str, Any]) -> Application:
        """
        Create a new application

        Args:
            application_data: Dictionary with application data

        Returns:
            Created application
        """
        application = Application(**application_data)
        self.session.add(application)
        await self.session.commit()
        await self.session.refresh(application)

        logger.info(f"Created application: {application.id}", extra={"application_id": application.id})
        return application

    async def get_by_id(self, application_id: UUID) -> Optional[Application]:
        """
        Get application by ID

        Args:
            application_id: Application UUID

        Returns:
            Application if found, None otherwise
        """
        result = await self.session.execute(
            select(Application).where(Application.id == application_id)
        )
        return result.scalar_one_or_none()

    async def find_open_by_job_and_email(
        self,
        job_id: Optional[UUID],
        email: str
    ) -> Optional[Application]:
        """
        Find a non-approved application for a (job, email) pair

        A null job_id matches unassigned applications.

        Args:
            job_id: Job UUID or None
            email: Applicant email

        Returns:
            Open application if one exists, None otherwise
        """
        job_condition = Application.job_id.is_(None) if job_id is None else Application.job_id == job_id
        result = await self.session.execute(
            select(Application)
            .where(job_condition)
            .where(Application.email == email)
            .where(Application.status != ApplicationStatus.APPROVED)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def update(
        self,
        application_id: UUID,
        update_data: Dict[str, Any],
        commit: bool = True
    ) -> Optional[Application]:
        """
        Update application

        Args:
            application_id: Application UUID
            update_data: Dictionary with fields to update
            commit: Commit immediately; pass False to join a larger unit of work

        Returns:
            Updated application if found, None otherwise
        """
        application = await self.get_by_id(application_id)

        if not application:
            return None

        for key, value in update_data.items():
            if hasattr(application, key):
                setattr(application, key, value)

        if commit:
            await self.session.commit()
            await self.session.refresh(application)
        else:
            await self.session.flush()

        logger.info(f"Updated application: {application_id}", extra={"application_id": application_id})
        return application
