"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from problem_collector.api import collector, health, jobs
from problem_collector.config import get_settings
from problem_collector.core.error_handlers import register_error_handlers
from problem_collector.core.logging import configure_logging
from problem_collector.core.redis import close_redis_pool, get_redis_pool
from problem_collector.db.database import init_db
from problem_collector.middleware.request_logging import RequestLoggingMiddleware
from problem_collector.services.factory import start_job_services, stop_job_services
from problem_collector.services.job_metrics import JobMetrics

settings = get_settings()
configure_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize and cleanup services."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"  Database: {settings.database_url}")
    logger.info(f"  Executor: {'arq' if settings.use_arq_worker else 'in-process'}")
    logger.info(f"  Max concurrent jobs: {settings.arq_max_jobs}")
    logger.info("=" * 60)

    app.state.start_time = time.time()
    app.state.settings = settings
    app.state.job_metrics = JobMetrics()
    for name in ("job_runner", "arq_worker", "job_executor", "job_launcher", "status_reporter"):
        setattr(app.state, name, None)

    init_db()

    # Redis holds job status; without it nothing can be launched or polled
    redis_pool = await get_redis_pool()
    if redis_pool:
        await start_job_services(app.state, settings, redis_pool)
    else:
        logger.warning("Redis unavailable, running in degraded mode (job endpoints return 503)")

    yield

    await stop_job_services(app.state)
    await close_redis_pool()

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Background collection of judge problem metadata and statements",
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Register global error handlers (AppError -> JSON responses)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware (adds X-Request-ID, logs method/path/latency)
app.add_middleware(RequestLoggingMiddleware)

# API Routes
app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(collector.router, prefix="/api/admin/problems", tags=["Problem Collection"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["Jobs"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/api/docs" if settings.debug else "disabled",
        "health": "/api/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "problem_collector.main:app", host=settings.host, port=settings.port, reload=settings.debug
    )
