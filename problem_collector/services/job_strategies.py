"""Per-kind collection strategies.

The runner loop is the same for every job kind; what differs is where the
work set comes from, which source is called per item, and what gets written
back. Each strategy supplies exactly those three pieces.
"""

import logging
from typing import Any, Protocol

from sqlalchemy.orm import Session

from problem_collector.core.exceptions import TransientFetchError
from problem_collector.db.repositories import ProblemRepository
from problem_collector.schemas.jobs import JobKind
from problem_collector.services.boj_crawler import BojCrawler, ProblemDetails
from problem_collector.services.problem_mapping import (
    detect_language,
    determine_category,
    extract_tags,
    guess_language_from_title,
    problem_url,
    tier_name,
)
from problem_collector.services.solvedac_client import SolvedAcClient

logger = logging.getLogger(__name__)


class JobStrategy(Protocol):
    kind: JobKind

    def resolve_work_set(
        self, db: Session, params: dict[str, Any], after: int | None
    ) -> list[int]:
        """Ordered item keys to process; ``after`` skips keys up to a checkpoint."""
        ...

    async def fetch_item(self, item_key: int) -> Any:
        """Call the external source. Raises ExternalSourceError subclasses."""
        ...

    def persist(self, db: Session, item_key: int, payload: Any) -> None:
        """Map the fetched payload and write it. Does not commit."""
        ...


class MetadataCollectStrategy:
    """Import solved.ac metadata for every id in ``[start, end]``."""

    kind = JobKind.METADATA_COLLECT

    def __init__(self, client: SolvedAcClient, problem_base_url: str):
        self.client = client
        self.problem_base_url = problem_base_url

    def resolve_work_set(self, db: Session, params: dict[str, Any], after: int | None) -> list[int]:
        start, end = int(params["start"]), int(params["end"])
        # A checkpoint from another range is ignored
        if after is not None and start <= after <= end:
            start = after + 1
        return list(range(start, end + 1))

    async def fetch_item(self, item_key: int) -> dict[str, Any]:
        metadata = await self.client.fetch_problem(item_key)
        try:
            tier = tier_name(metadata.level)
        except ValueError as e:
            raise TransientFetchError(item_key, str(e)) from e
        tags = extract_tags(metadata.tags)
        return {
            "title": metadata.title,
            "tier": tier,
            "level": metadata.level,
            "category": determine_category(tags),
            "tags": tags,
            "language": guess_language_from_title(metadata.title),
        }

    def persist(self, db: Session, item_key: int, payload: dict[str, Any]) -> None:
        ProblemRepository(db).upsert(
            item_key,
            create_defaults={"url": problem_url(self.problem_base_url, item_key)},
            **payload,
        )


class DetailsCollectStrategy:
    """Backfill statement HTML and samples for problems that lack them."""

    kind = JobKind.DETAILS_COLLECT

    def __init__(self, crawler: BojCrawler):
        self.crawler = crawler

    def resolve_work_set(self, db: Session, params: dict[str, Any], after: int | None) -> list[int]:
        return [p.id for p in ProblemRepository(db).find_missing_details(after_id=after)]

    async def fetch_item(self, item_key: int) -> ProblemDetails:
        return await self.crawler.crawl_problem(item_key)

    def persist(self, db: Session, item_key: int, payload: ProblemDetails) -> None:
        repo = ProblemRepository(db)
        problem = repo.get(item_key)
        if problem is None:
            logger.warning(f"Problem {item_key} disappeared before details were saved")
            return
        repo.partial_update(
            problem,
            skip_none=False,
            description_html=payload.description_html,
            input_description_html=payload.input_description_html,
            output_description_html=payload.output_description_html,
            sample_inputs=payload.sample_inputs or None,
            sample_outputs=payload.sample_outputs or None,
            language=detect_language(payload.description_text),
        )


class LanguageUpdateStrategy:
    """Re-detect the statement language of unclassified problems."""

    kind = JobKind.LANGUAGE_UPDATE

    def __init__(self, crawler: BojCrawler):
        self.crawler = crawler

    def resolve_work_set(self, db: Session, params: dict[str, Any], after: int | None) -> list[int]:
        return [p.id for p in ProblemRepository(db).find_unclassified_language(after_id=after)]

    async def fetch_item(self, item_key: int) -> str:
        details = await self.crawler.crawl_problem(item_key)
        return detect_language(details.description_text)

    def persist(self, db: Session, item_key: int, payload: str) -> None:
        repo = ProblemRepository(db)
        problem = repo.get(item_key)
        if problem is None:
            logger.warning(f"Problem {item_key} disappeared before language was saved")
            return
        repo.partial_update(problem, language=payload)


def build_strategies(
    solvedac: SolvedAcClient, crawler: BojCrawler, problem_base_url: str
) -> dict[JobKind, JobStrategy]:
    return {
        JobKind.METADATA_COLLECT: MetadataCollectStrategy(solvedac, problem_base_url),
        JobKind.DETAILS_COLLECT: DetailsCollectStrategy(crawler),
        JobKind.LANGUAGE_UPDATE: LanguageUpdateStrategy(crawler),
    }
