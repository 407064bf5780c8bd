"""Problem repository."""

from typing import Any

from sqlalchemy import func, or_, select

from problem_collector.db.models import Problem
from problem_collector.db.repositories.base import BaseRepository

UNCLASSIFIED_LANGUAGE = "other"


class ProblemRepository(BaseRepository[Problem]):
    model = Problem

    def upsert(
        self,
        problem_id: int,
        *,
        create_defaults: dict[str, Any] | None = None,
        **fields: Any,
    ) -> Problem:
        """Create or update a problem by its natural key.

        ``create_defaults`` are only applied when the row does not exist yet.
        ``None`` values in ``fields`` are written as-is so crawled fields can
        be cleared on a re-crawl.
        """
        problem = self.get(problem_id)
        if problem is None:
            problem = Problem(id=problem_id, **(create_defaults or {}), **fields)
            return self.add(problem)
        return self.partial_update(problem, skip_none=False, **fields)

    def find_missing_details(self, after_id: int | None = None) -> list[Problem]:
        """Problems whose description has not been crawled yet, ascending id."""
        stmt = select(Problem).where(Problem.description_html.is_(None))
        if after_id is not None:
            stmt = stmt.where(Problem.id > after_id)
        return list(self.db.scalars(stmt.order_by(Problem.id)).all())

    def find_unclassified_language(self, after_id: int | None = None) -> list[Problem]:
        """Problems with no language or the 'other' placeholder, ascending id."""
        stmt = select(Problem).where(
            or_(Problem.language.is_(None), Problem.language == UNCLASSIFIED_LANGUAGE)
        )
        if after_id is not None:
            stmt = stmt.where(Problem.id > after_id)
        return list(self.db.scalars(stmt.order_by(Problem.id)).all())

    def id_bounds(self) -> tuple[int | None, int | None]:
        row = self.db.execute(select(func.min(Problem.id), func.max(Problem.id))).one()
        return row[0], row[1]

    def min_missing_details_id(self) -> int | None:
        stmt = select(func.min(Problem.id)).where(Problem.description_html.is_(None))
        return self.db.scalar(stmt)

    def min_unclassified_language_id(self) -> int | None:
        stmt = select(func.min(Problem.id)).where(
            or_(Problem.language.is_(None), Problem.language == UNCLASSIFIED_LANGUAGE)
        )
        return self.db.scalar(stmt)
