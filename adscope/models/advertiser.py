from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON
from adscope.models.database import Base

PLATFORM_GOOGLE = 1
PLATFORM_META = 2


class Advertiser(Base):
    """Brand or page running ads on one platform."""

    __tablename__ = "advertisers"

    id = Column(String(100), primary_key=True)
    platform_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSON)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Advertiser(id={self.id}, platform_id={self.platform_id}, name={self.name})>"
