"""Kind-agnostic job status polling and SSE streaming."""

import asyncio
import json
import logging
import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from problem_collector.api.collector import read_job_status
from problem_collector.core.dependencies import get_status_reporter
from problem_collector.core.exceptions import JobStatusStoreError
from problem_collector.schemas.jobs import JobStatusResponse
from problem_collector.services.status_reporter import StatusReporter

logger = logging.getLogger(__name__)

router = APIRouter()

POLL_INTERVAL_SECONDS = 2


@router.get("/{job_id}/status", response_model=JobStatusResponse)
async def get_job_status(job_id: str, reporter: StatusReporter = Depends(get_status_reporter)):
    """Get status for a job of any kind. Returns 404 if unknown or expired."""
    return await read_job_status(reporter, job_id, None)


@router.get("/{job_id}/stream")
async def stream_job_progress(job_id: str, reporter: StatusReporter = Depends(get_status_reporter)):
    """Stream SSE progress events for a job.

    Polls the status store every 2 seconds and ends once the job reaches a
    terminal state.
    """
    await read_job_status(reporter, job_id, None)

    async def event_generator():
        event_id = str(uuid.uuid4())
        data = {"job_id": job_id, "message": "Connected"}
        yield f"id: {event_id}\nevent: connected\ndata: {json.dumps(data)}\n\n"

        while True:
            try:
                current = await reporter.get_status(job_id)
            except JobStatusStoreError as e:
                logger.warning(f"Status stream for job {job_id} lost the store: {e}")
                current = None

            if current is None:
                event_id = str(uuid.uuid4())
                yield f"id: {event_id}\nevent: error\ndata: {json.dumps({'error': 'Job not found'})}\n\n"
                return

            event_id = str(uuid.uuid4())
            payload = current.model_dump(mode="json")
            yield f"id: {event_id}\nevent: progress\ndata: {json.dumps(payload)}\n\n"

            if current.is_terminal:
                event_id = str(uuid.uuid4())
                yield f"id: {event_id}\nevent: complete\ndata: {json.dumps(payload)}\n\n"
                return

            await asyncio.sleep(POLL_INTERVAL_SECONDS)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
