"""Problem and crawler checkpoint models."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from problem_collector.db.database import Base
from problem_collector.db.models.base import TimestampMixin


class Problem(TimestampMixin, Base):
    """A judge problem assembled from API metadata and crawled page details.

    The primary key is the upstream problem number (natural key), so
    re-running a collection updates rows in place.
    """

    __tablename__ = "problems"

    id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String, nullable=False)
    tier = Column(String, nullable=False)
    level = Column(Integer, nullable=False)
    category = Column(String, nullable=False, default="implementation")
    tags = Column(JSON, nullable=False, default=list)
    url = Column(String, nullable=False)
    language = Column(String, nullable=True, index=True)  # ko, en, ja, zh, other

    # Filled by details_collect
    description_html = Column(Text, nullable=True)
    input_description_html = Column(Text, nullable=True)
    output_description_html = Column(Text, nullable=True)
    sample_inputs = Column(JSON, nullable=True)
    sample_outputs = Column(JSON, nullable=True)


class CrawlerCheckpoint(Base):
    """Last processed item per job kind, used to resume an interrupted crawl."""

    __tablename__ = "crawler_checkpoints"

    job_kind = Column(String, primary_key=True)
    last_item_key = Column(String, nullable=False)
    job_id = Column(String, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
