"""SQLAlchemy ORM models.

Import from here: ``from problem_collector.db.models import Problem``
"""

from problem_collector.db.models.base import TimestampMixin
from problem_collector.db.models.problem import CrawlerCheckpoint, Problem

__all__ = [
    "TimestampMixin",
    "Problem",
    "CrawlerCheckpoint",
]
