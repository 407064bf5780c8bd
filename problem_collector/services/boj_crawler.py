"""BOJ problem page crawler.

Fetches ``/problem/N`` and pulls the statement sections and sample cases
out of the HTML. Callers are responsible for pacing between requests.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from bs4 import BeautifulSoup

from problem_collector.config import Settings
from problem_collector.core.exceptions import ItemNotFoundError, TransientFetchError

logger = logging.getLogger(__name__)

MAX_SAMPLES = 5


@dataclass
class ProblemDetails:
    description_html: str
    input_description_html: str | None = None
    output_description_html: str | None = None
    sample_inputs: list[str] = field(default_factory=list)
    sample_outputs: list[str] = field(default_factory=list)
    description_text: str = ""


class BojCrawler:
    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": user_agent},
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "BojCrawler":
        return cls(
            settings.boj_base_url,
            settings.crawler_user_agent,
            timeout=settings.http_timeout_seconds,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_page(self, problem_id: int) -> str:
        try:
            response = await self._client.get(f"/problem/{problem_id}")
        except httpx.HTTPError as e:
            raise TransientFetchError(problem_id, f"Request failed: {e}") from e

        if response.status_code == 404:
            raise ItemNotFoundError(problem_id, f"Problem page {problem_id} not found")
        if response.status_code != 200:
            raise TransientFetchError(problem_id, f"BOJ returned HTTP {response.status_code}")
        return response.text

    async def crawl_problem(self, problem_id: int) -> ProblemDetails:
        """Fetch and parse one problem page.

        Raises:
            ItemNotFoundError: the page does not exist.
            TransientFetchError: request failed or the page has no statement.
        """
        html = await self.fetch_page(problem_id)
        return parse_problem_page(problem_id, html)


def _inner_html(soup: BeautifulSoup, element_id: str) -> str | None:
    element = soup.find(id=element_id)
    if element is None:
        return None
    return element.decode_contents().strip()


def parse_problem_page(problem_id: int, html: str) -> ProblemDetails:
    soup = BeautifulSoup(html, "html.parser")

    description = soup.find(id="problem_description")
    if description is None:
        raise TransientFetchError(problem_id, "Problem page has no #problem_description")

    inputs: list[str] = []
    outputs: list[str] = []
    for i in range(1, MAX_SAMPLES + 1):
        sample_in = soup.find(id=f"sample-input-{i}")
        sample_out = soup.find(id=f"sample-output-{i}")
        if sample_in is None or sample_out is None:
            break
        inputs.append(sample_in.get_text().strip())
        outputs.append(sample_out.get_text().strip())

    return ProblemDetails(
        description_html=description.decode_contents().strip(),
        input_description_html=_inner_html(soup, "problem_input"),
        output_description_html=_inner_html(soup, "problem_output"),
        sample_inputs=inputs,
        sample_outputs=outputs,
        description_text=description.get_text(" ", strip=True),
    )
