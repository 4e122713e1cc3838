"""Job repository for database operations"""

from typing import Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.job import Job
from backend.app.core.logging import get_logger

logger = get_logger(__name__)


class JobRepository:
    """Read access to jobs for the scoring and approval paths"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, job_id: UUID) -> Optional[Job]:
        """
        Get job by ID

        Args:
            job_id: Job UUID

        Returns:
            Job if found, None otherwise
        """
        result = await self.session.execute(select(Job).where(Job.id == job_id))
        job = result.scalar_one_or_none()

        if not job:
            logger.debug(f"Job not found: {job_id}")

        return job
