"""Pipeline repository for database operations"""

from typing import Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.pipeline import Pipeline


class PipelineRepository:
    """Read access to pipelines"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, pipeline_id: UUID) -> Optional[Pipeline]:
        result = await self.session.execute(select(Pipeline).where(Pipeline.id == pipeline_id))
        return result.scalar_one_or_none()
