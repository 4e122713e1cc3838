"""Candidate repository for database operations"""

from typing import Optional, Dict, Any
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.candidate import Candidate
from backend.app.core.logging import get_logger

logger = get_logger(__name__)


class CandidateRepository:
    """Repository for candidate database operations"""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository

        Args:
            session: Database session
        """
        self.session = session

    async def create(self, candidate_data: Dict[str, Any], commit: bool = True) -> Candidate:
        """
        Create a new candidate

        Args:
            candidate_data: Dictionary with candidate data
            commit: Commit immediately; pass False to flush inside a larger unit of work

        Returns:
            Created candidate

        Raises:
            IntegrityError: If a candidate already exists for the application
        """
        candidate = Candidate(**candidate_data)
        self.session.add(candidate)

        if commit:
            await self.session.commit()
            await self.session.refresh(candidate)
        else:
            await self.session.flush()

        logger.info(f"Created candidate: {candidate.id}", extra={"candidate_id": candidate.id})
        return candidate

    async def get_by_id(self, candidate_id: UUID) -> Optional[Candidate]:
        """
        Get candidate by ID

        Args:
            candidate_id: Candidate UUID

        Returns:
            Candidate if found, None otherwise
        """
        result = await self.session.execute(
            select(Candidate).where(Candidate.id == candidate_id)
        )
        return result.scalar_one_or_none()

    async def get_by_application_id(self, application_id: UUID) -> Optional[Candidate]:
        """
        Get the candidate materialized from an application

        Args:
            application_id: Application UUID

        Returns:
            Candidate if the application was already approved, None otherwise
        """
        result = await self.session.execute(
            select(Candidate).where(Candidate.application_id == application_id)
        )
        candidate = result.scalar_one_or_none()

        if candidate:
            logger.debug(f"Application {application_id} already has candidate {candidate.id}")

        return candidate
