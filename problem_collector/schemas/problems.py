"""Problem collection schemas."""

from pydantic import BaseModel


class ProblemStatsResponse(BaseModel):
    """Stored corpus overview used to pick the next collection range."""

    total_count: int
    min_problem_id: int | None = None
    max_problem_id: int | None = None
    min_null_description_problem_id: int | None = None
    min_null_language_problem_id: int | None = None
