"""Configuration management using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_name: str = "Problem Collector"
    app_version: str = "0.3.0"
    debug: bool = True
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"  # "json" for production, "console" for dev

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite:///./data/problem_collector.db"

    # Redis / ARQ Task Queue
    redis_url: str = "redis://localhost:6379"
    arq_job_timeout: int = 6 * 60 * 60  # A full details crawl can take hours
    arq_max_jobs: int = 2  # Max concurrently running collection jobs
    arq_health_check_interval: int = 60  # Seconds between worker health checks
    use_arq_worker: bool = True  # Set False to run jobs as in-process asyncio tasks

    # Job status / checkpoints
    job_status_ttl_hours: int = 24
    checkpoint_save_interval: int = 10  # Persist snapshot + checkpoint every N items

    # Pacing
    metadata_delay_seconds: float = 0.5  # Solved.ac documented rate limit
    crawl_delay_min_seconds: float = 2.0  # Anti-ban jitter band for page crawls
    crawl_delay_max_seconds: float = 4.0

    # External sources
    solvedac_base_url: str = "https://solved.ac/api/v3"
    boj_base_url: str = "https://www.acmicpc.net"
    http_timeout_seconds: float = 10.0
    crawler_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    solvedac_max_retries: int = 2
    solvedac_retry_delays: str = "2,5"  # Comma-separated seconds between 429 retries

    @property
    def solvedac_retry_delay_list(self) -> list[float]:
        return [float(d) for d in self.solvedac_retry_delays.split(",") if d.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
