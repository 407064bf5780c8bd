"""Repository layer over the ORM models."""

from problem_collector.db.repositories.base import BaseRepository
from problem_collector.db.repositories.checkpoint import CheckpointRepository
from problem_collector.db.repositories.problem import ProblemRepository

__all__ = ["BaseRepository", "CheckpointRepository", "ProblemRepository"]
