"""Collection job ARQ task.

Thin wrapper around JobRunner.run(); the runner records progress and any
failure in the job status store itself.
"""

import logging

logger = logging.getLogger(__name__)


async def run_collection_job(ctx: dict, job_id: str, kind: str, params: dict) -> dict:
    """ARQ task: run one collection job to a terminal state.

    Args:
        ctx: ARQ context dict (contains ``runner`` from the worker startup)
        job_id: Job ID whose PENDING status was written by the launcher
        kind: JobKind value
        params: Validated launch parameters

    Returns:
        Dict with the final state and counters
    """
    runner = ctx["runner"]

    logger.info(f"[ARQ] Starting {kind} job {job_id}")
    status = await runner.run(job_id, kind, params)
    logger.info(f"[ARQ] Job {job_id} finished as {status.status}")
    return {
        "job_id": job_id,
        "status": status.status.value,
        "processed_count": status.processed_count,
        "success_count": status.success_count,
        "fail_count": status.fail_count,
    }
