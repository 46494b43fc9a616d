from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, JSON
from adscope.models.database import Base


class ScrapeRun(Base):
    """Counters and status for one orchestrator invocation."""

    __tablename__ = "scrape_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    platform = Column(String(20), nullable=False)  # google, meta
    status = Column(String(20), default="running")  # running, completed, failed
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime)
    identifiers_total = Column(Integer, default=0)
    identifiers_processed = Column(Integer, default=0)
    identifiers_failed = Column(Integer, default=0)
    ads_found = Column(Integer, default=0)
    ads_new = Column(Integer, default=0)
    ads_updated = Column(Integer, default=0)
    creatives_inserted = Column(Integer, default=0)
    images_failed = Column(Integer, default=0)
    errors_count = Column(Integer, default=0)
    run_metadata = Column(JSON)

    def __repr__(self):
        return f"<ScrapeRun(id={self.id}, platform={self.platform}, status={self.status})>"

    def mark_completed(self):
        """Mark the run as completed."""
        self.status = "completed"
        self.completed_at = datetime.utcnow()

    def mark_failed(self):
        """Mark the run as failed."""
        self.status = "failed"
        self.completed_at = datetime.utcnow()


class ScrapeError(Base):
    """An isolated failure: one identifier or one store write."""

    __tablename__ = "scrape_errors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scrape_run_id = Column(Integer, nullable=False, index=True)
    identifier = Column(String(100), index=True)
    error_type = Column(String(100))
    error_message = Column(Text)
    stack_trace = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ScrapeError(id={self.id}, identifier={self.identifier}, type={self.error_type})>"
