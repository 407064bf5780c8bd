"""Crawler checkpoint repository."""

from datetime import datetime

from sqlalchemy import select

from problem_collector.db.models import CrawlerCheckpoint
from problem_collector.db.repositories.base import BaseRepository


class CheckpointRepository(BaseRepository[CrawlerCheckpoint]):
    model = CrawlerCheckpoint

    def save(self, job_kind: str, last_item_key: str, job_id: str | None = None) -> CrawlerCheckpoint:
        """Insert or move the checkpoint for a job kind."""
        checkpoint = self.get(job_kind)
        if checkpoint is None:
            checkpoint = CrawlerCheckpoint(job_kind=job_kind)
        checkpoint.last_item_key = last_item_key
        checkpoint.job_id = job_id
        checkpoint.updated_at = datetime.utcnow()
        return self.add(checkpoint)

    def delete_for(self, job_kind: str) -> bool:
        checkpoint = self.get(job_kind)
        if checkpoint is None:
            return False
        self.delete(checkpoint)
        return True

    def list_ordered(self) -> list[CrawlerCheckpoint]:
        stmt = select(CrawlerCheckpoint).order_by(CrawlerCheckpoint.job_kind)
        return list(self.db.scalars(stmt).all())
