"""Delay between consecutive external calls inside a job loop.

A pure delay primitive: no retry, no backoff. Backoff on 429 belongs to the
source clients. Pacing is per job; two concurrent jobs of the same kind each
keep their own spacing, so together they double the call rate upstream.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from problem_collector.config import Settings
from problem_collector.schemas.jobs import JobKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PacingPolicy:
    """Uniform delay in ``[min_seconds, max_seconds]``; fixed when equal."""

    min_seconds: float
    max_seconds: float

    def __post_init__(self) -> None:
        if self.min_seconds < 0 or self.max_seconds < self.min_seconds:
            raise ValueError(
                f"Invalid pacing band [{self.min_seconds}, {self.max_seconds}]"
            )

    @classmethod
    def fixed(cls, seconds: float) -> "PacingPolicy":
        return cls(seconds, seconds)

    @classmethod
    def jittered(cls, min_seconds: float, max_seconds: float) -> "PacingPolicy":
        return cls(min_seconds, max_seconds)

    def sample(self, rng: random.Random) -> float:
        if self.min_seconds == self.max_seconds:
            return self.min_seconds
        return rng.uniform(self.min_seconds, self.max_seconds)


class Pacer:
    """Blocks the calling task for the kind's policy duration."""

    def __init__(
        self,
        policies: dict[JobKind, PacingPolicy],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self._policies = policies
        self._sleep = sleep
        self._rng = rng or random.Random()

    def delay_for(self, kind: JobKind) -> float:
        return self._policies[kind].sample(self._rng)

    async def wait(self, kind: JobKind) -> float:
        """Sleep for one sampled delay and return it (seconds)."""
        delay = self.delay_for(kind)
        if delay > 0:
            await self._sleep(delay)
        return delay


def build_pacer(settings: Settings) -> Pacer:
    """Fixed spacing for the rate-limited API, jitter for page crawls."""
    crawl = PacingPolicy.jittered(settings.crawl_delay_min_seconds, settings.crawl_delay_max_seconds)
    return Pacer(
        {
            JobKind.METADATA_COLLECT: PacingPolicy.fixed(settings.metadata_delay_seconds),
            JobKind.DETAILS_COLLECT: crawl,
            JobKind.LANGUAGE_UPDATE: crawl,
        }
    )
