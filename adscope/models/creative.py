from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from adscope.models.database import Base

CREATIVE_IMAGE = "image"
CREATIVE_BODY_TEXT = "body_text"
CREATIVE_CTA = "cta"


class AdCreative(Base):
    """Image, body text or call-to-action belonging to an ad.

    Rows are insert-only. The autoincrement id orders creatives, so an ad's
    first image row is its primary image.
    """

    __tablename__ = "ad_creatives"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ad_id = Column(String(100), ForeignKey("ads.id"), nullable=False, index=True)
    creative_type = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)  # public URL for images, text otherwise
    storage_path = Column(Text)
    width = Column(Integer)
    height = Column(Integer)
    metadata_ = Column("metadata", JSON)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    ad = relationship("Ad", backref="creatives")

    def __repr__(self):
        return f"<AdCreative(id={self.id}, ad_id={self.ad_id}, type={self.creative_type})>"
