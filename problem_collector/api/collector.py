"""Admin endpoints for launching and monitoring problem collection jobs."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from problem_collector.core.dependencies import (
    get_job_launcher,
    get_job_metrics,
    get_status_reporter,
)
from problem_collector.core.exceptions import EntityNotFound
from problem_collector.db.database import get_db
from problem_collector.db.repositories import CheckpointRepository, ProblemRepository
from problem_collector.schemas.jobs import (
    CheckpointResponse,
    JobKind,
    JobLaunchResponse,
    JobMetricsResponse,
    JobStatusResponse,
)
from problem_collector.schemas.problems import ProblemStatsResponse
from problem_collector.services.job_launcher import JobLauncher
from problem_collector.services.job_metrics import JobMetrics
from problem_collector.services.status_reporter import StatusReporter

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_job_status(reporter: StatusReporter, job_id: str, kind: JobKind | None) -> JobStatusResponse:
    view = await reporter.get_status(job_id, kind)
    if view is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found.",
        )
    return view


@router.post(
    "/collect-metadata",
    response_model=JobLaunchResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def collect_metadata(
    start: int = Query(..., description="First problem id (inclusive)"),
    end: int = Query(..., description="Last problem id (inclusive)"),
    resume: bool = Query(True, description="Continue after the stored checkpoint if it is in range"),
    launcher: JobLauncher = Depends(get_job_launcher),
):
    """Import solved.ac metadata for problem ids ``start..end``.

    Returns immediately with the job id; poll the status endpoint for progress.
    """
    job = await launcher.launch(JobKind.METADATA_COLLECT, {"start": start, "end": end, "resume": resume})
    return JobLaunchResponse(
        job_id=job.job_id,
        kind=job.kind,
        status=job.status,
        message="Metadata collection started.",
        range=f"{start}-{end}",
    )


@router.post(
    "/collect-details",
    response_model=JobLaunchResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def collect_details(
    resume: bool = True,
    launcher: JobLauncher = Depends(get_job_launcher),
):
    """Crawl statement pages for every problem without a description."""
    job = await launcher.launch(JobKind.DETAILS_COLLECT, {"resume": resume})
    return JobLaunchResponse(
        job_id=job.job_id,
        kind=job.kind,
        status=job.status,
        message="Details collection started.",
    )


@router.post(
    "/update-language",
    response_model=JobLaunchResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def update_language(
    resume: bool = True,
    launcher: JobLauncher = Depends(get_job_launcher),
):
    """Re-detect the language of problems still unclassified."""
    job = await launcher.launch(JobKind.LANGUAGE_UPDATE, {"resume": resume})
    return JobLaunchResponse(
        job_id=job.job_id,
        kind=job.kind,
        status=job.status,
        message="Language update started.",
    )


@router.get("/collect-metadata/status/{job_id}", response_model=JobStatusResponse)
async def metadata_status(job_id: str, reporter: StatusReporter = Depends(get_status_reporter)):
    return await read_job_status(reporter, job_id, JobKind.METADATA_COLLECT)


@router.get("/collect-details/status/{job_id}", response_model=JobStatusResponse)
async def details_status(job_id: str, reporter: StatusReporter = Depends(get_status_reporter)):
    return await read_job_status(reporter, job_id, JobKind.DETAILS_COLLECT)


@router.get("/update-language/status/{job_id}", response_model=JobStatusResponse)
async def language_status(job_id: str, reporter: StatusReporter = Depends(get_status_reporter)):
    return await read_job_status(reporter, job_id, JobKind.LANGUAGE_UPDATE)


@router.get("/stats", response_model=ProblemStatsResponse)
async def problem_stats(db: Session = Depends(get_db)):
    """Corpus overview: size, id bounds and where the backfills stand."""
    repo = ProblemRepository(db)
    min_id, max_id = repo.id_bounds()
    return ProblemStatsResponse(
        total_count=repo.count(),
        min_problem_id=min_id,
        max_problem_id=max_id,
        min_null_description_problem_id=repo.min_missing_details_id(),
        min_null_language_problem_id=repo.min_unclassified_language_id(),
    )


@router.get("/checkpoints", response_model=list[CheckpointResponse])
async def list_checkpoints(db: Session = Depends(get_db)):
    return [
        CheckpointResponse(
            job_kind=cp.job_kind,
            last_item_key=cp.last_item_key,
            job_id=cp.job_id,
            updated_at=cp.updated_at,
        )
        for cp in CheckpointRepository(db).list_ordered()
    ]


@router.delete("/checkpoints/{kind}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_checkpoint(kind: JobKind, db: Session = Depends(get_db)):
    """Forget a kind's checkpoint so its next job starts from the beginning."""
    if not CheckpointRepository(db).delete_for(kind.value):
        raise EntityNotFound(f"No checkpoint for {kind}")
    db.commit()
    logger.info(f"Checkpoint cleared for {kind}")


@router.get("/metrics", response_model=JobMetricsResponse)
async def job_metrics(
    window_seconds: int = Query(3600, ge=1, le=7 * 24 * 3600),
    metrics: JobMetrics = Depends(get_job_metrics),
):
    """Per-kind item outcomes recorded by runners in this process."""
    return JobMetricsResponse(window_seconds=window_seconds, kinds=metrics.query(window_seconds))
