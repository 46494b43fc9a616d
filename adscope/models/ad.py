from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, BigInteger, JSON
from sqlalchemy.orm import relationship
from adscope.models.database import Base


class Ad(Base):
    """One ad scraped from a platform's transparency archive."""

    __tablename__ = "ads"

    id = Column(String(100), primary_key=True)
    # Not a foreign key: Meta pages without page info store ads with no advertiser row
    advertiser_id = Column(String(100), nullable=False, index=True)
    ad_type = Column(String(50), nullable=False, default="unknown")
    start_date = Column(DateTime)
    end_date = Column(DateTime)
    is_active = Column(Boolean, default=False, nullable=False)
    total_active_time = Column(BigInteger)  # seconds
    metadata_ = Column("metadata", JSON)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    advertiser = relationship(
        "Advertiser",
        primaryjoin="foreign(Ad.advertiser_id) == Advertiser.id",
        backref="ads",
        viewonly=True,
    )

    def __repr__(self):
        return f"<Ad(id={self.id}, advertiser_id={self.advertiser_id})>"

    def active_duration_seconds(self):
        """Upstream duration when known, otherwise the first/last seen span."""
        if self.total_active_time is not None:
            return self.total_active_time
        if self.start_date and self.end_date:
            return int((self.end_date - self.start_date).total_seconds())
        return 0
