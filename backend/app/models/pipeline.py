"""Pipeline model"""

from sqlalchemy import Column, String, Uuid
from backend.app.core.database import Base
from backend.app.models.base import TimestampMixin, JSONType
import uuid


class Pipeline(Base, TimestampMixin):
    """Ordered hiring stages; stages are stored as a list of {id, name, order}"""

    __tablename__ = "pipelines"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    stages = Column(JSONType, nullable=False, default=list)

    def __repr__(self):
        return f"<Pipeline(id={self.id}, name={self.name}, stages={len(self.stages or [])})>"
