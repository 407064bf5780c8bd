"""Global error handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from problem_collector.core.exceptions import AppError, JobStatusStoreError, ServiceUnavailableError
from problem_collector.core.logging import request_id_var

logger = logging.getLogger(__name__)


def _error_body(detail: str, error_code: str, context: dict | None = None) -> dict:
    content: dict = {"detail": detail, "error_code": error_code}
    if context:
        content.update(context)
    rid = request_id_var.get()
    if rid:
        content["request_id"] = rid
    return content


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app.

    AppError subclasses become a JSON body with `detail`, `error_code`, any
    extra context fields and the request id. A JobStatusStoreError that
    escapes a route means Redis dropped mid-request and is reported as 503.
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, exc.error_code, exc.context),
        )

    @app.exception_handler(JobStatusStoreError)
    async def status_store_error_handler(request: Request, exc: JobStatusStoreError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path}: job status store failed: {exc}")
        return JSONResponse(
            status_code=ServiceUnavailableError.status_code,
            content=_error_body("Job status store is unavailable", ServiceUnavailableError.error_code),
        )
