import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text, JSON
from sqlalchemy.types import Date

from kinbook.database import Base


class Memory(Base):
    __tablename__ = "memories"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)

    # Public URLs returned by the blob store
    image_urls = Column(JSON, nullable=False, default=list)
    people_ids = Column(JSON, nullable=False, default=list)

    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
