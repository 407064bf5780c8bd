"""Solved.ac API client for problem metadata.

One call per problem id. 404 means the id does not exist; 429 is retried a
few times with a fixed backoff schedule before giving up on the item. A
Retry-After header is followed but never beyond the longest scheduled delay.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from problem_collector.config import Settings
from problem_collector.core.exceptions import ItemNotFoundError, TransientFetchError

logger = logging.getLogger(__name__)


@dataclass
class ProblemMetadata:
    problem_id: int
    title: str
    level: int
    tags: list[dict[str, Any]] = field(default_factory=list)


class SolvedAcClient:
    """Async client for ``GET /problem/show?problemId=N``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delays: list[float] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delays = retry_delays or [2.0, 5.0]
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "SolvedAcClient":
        return cls(
            settings.solvedac_base_url,
            timeout=settings.http_timeout_seconds,
            max_retries=settings.solvedac_max_retries,
            retry_delays=settings.solvedac_retry_delay_list,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _retry_delay(self, attempt: int, response: httpx.Response) -> float:
        """Backoff before the next attempt; Retry-After is honoured up to the longest configured delay."""
        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            cap = max(self.retry_delays)
            if float(retry_after) > cap:
                logger.warning(f"solved.ac asked for Retry-After {retry_after}s, waiting {cap}s instead")
                return cap
            return float(retry_after)
        return self.retry_delays[min(attempt, len(self.retry_delays) - 1)]

    async def fetch_problem(self, problem_id: int) -> ProblemMetadata:
        """Fetch one problem's metadata.

        Raises:
            ItemNotFoundError: solved.ac has no such problem.
            TransientFetchError: network error, 429 after retries, other
                non-success status or a malformed payload.
        """
        attempt = 0
        while True:
            try:
                response = await self._client.get("/problem/show", params={"problemId": problem_id})
            except httpx.HTTPError as e:
                raise TransientFetchError(problem_id, f"Request failed: {e}") from e

            if response.status_code == 404:
                raise ItemNotFoundError(problem_id, f"Problem {problem_id} not found on solved.ac")
            if response.status_code == 429 and attempt < self.max_retries:
                delay = self._retry_delay(attempt, response)
                logger.warning(
                    f"Rate limited fetching problem {problem_id}, "
                    f"retry {attempt + 1}/{self.max_retries} in {delay}s"
                )
                await self._sleep(delay)
                attempt += 1
                continue
            if response.status_code != 200:
                raise TransientFetchError(
                    problem_id, f"solved.ac returned HTTP {response.status_code}"
                )
            return self._parse(problem_id, response)

    @staticmethod
    def _parse(problem_id: int, response: httpx.Response) -> ProblemMetadata:
        try:
            data = response.json()
            title = data.get("titleKo") or data["title"]
            level = int(data["level"])
            tags = list(data.get("tags") or [])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise TransientFetchError(problem_id, f"Malformed solved.ac payload: {e}") from e
        return ProblemMetadata(problem_id=problem_id, title=title, level=level, tags=tags)
