"""
Job API Routes

Create, read, update and process jobs, and poll provider tasks for jobs
whose provider finishes asynchronously.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from dj_visuals.api.deps import get_job_manager_dep, get_job_queue_dep, get_task_poller_dep
from dj_visuals.models.job import JobStatus
from dj_visuals.services.generators import ProviderStatus
from dj_visuals.services.job_manager import JobManager
from dj_visuals.services.task_poller import ExternalTaskPoller
from dj_visuals.services.task_queue import JobQueue
from dj_visuals.utils.errors import (
    DJVisualsError,
    InvalidInputError,
    InvalidTransitionError,
    JobNotFoundError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


# ==================== Request/Response Models ====================


class CreateJobRequest(BaseModel):
    """Request to create a job."""

    model_config = ConfigDict(populate_by_name=True)

    job_type: Optional[str] = Field(default=None, alias="jobType")
    input_data: Optional[Dict[str, Any]] = Field(default=None, alias="inputData")


class CreateJobResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    status: JobStatus


class UpdateJobRequest(BaseModel):
    """Partial job update; only supplied fields change."""

    model_config = ConfigDict(populate_by_name=True)

    status: Optional[JobStatus] = None
    output_data: Optional[Dict[str, Any]] = Field(default=None, alias="outputData")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")


class PollTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(min_length=1, alias="taskId")


class PollTaskResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: ProviderStatus
    video_url: Optional[str] = Field(default=None, alias="videoUrl")
    error: Optional[str] = None


# ==================== Error Handling ====================


ERROR_STATUS_CODES = {
    InvalidInputError: 400,
    JobNotFoundError: 404,
    InvalidTransitionError: 409,
    TransientProviderError: 503,
}


def _status_code_for(exc: DJVisualsError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


async def handle_dj_visuals_error(request: Request, exc: DJVisualsError) -> JSONResponse:
    status_code = _status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DJVisualsError, handle_dj_visuals_error)


# ==================== Endpoints ====================


@router.post("", response_model=CreateJobResponse, response_model_by_alias=True)
async def create_job(
    request: CreateJobRequest,
    manager: JobManager = Depends(get_job_manager_dep),
    queue: JobQueue = Depends(get_job_queue_dep),
):
    """
    Create a pending job and hand it to the worker pool.

    Returns as soon as the job is stored; clients poll GET /jobs/{id}.
    """
    if not request.job_type or request.input_data is None:
        raise InvalidInputError("jobType and inputData are required")

    job_id = await manager.create(request.job_type, request.input_data)
    await queue.enqueue(job_id)
    return CreateJobResponse(job_id=job_id, status=JobStatus.PENDING)


@router.get("/{job_id}")
async def get_job(job_id: str, manager: JobManager = Depends(get_job_manager_dep)):
    job = await manager.get(job_id)
    return job.to_wire()


@router.patch("/{job_id}")
async def update_job(
    job_id: str,
    request: UpdateJobRequest,
    manager: JobManager = Depends(get_job_manager_dep),
):
    job = await manager.update(
        job_id,
        status=request.status,
        output_data=request.output_data,
        error_message=request.error_message,
    )
    return job.to_wire()


@router.post("/{job_id}/process", status_code=202)
async def process_job(
    job_id: str,
    manager: JobManager = Depends(get_job_manager_dep),
    queue: JobQueue = Depends(get_job_queue_dep),
):
    """Enqueue a job for processing. Repeat calls are harmless."""
    job = await manager.get(job_id)
    if not job.is_terminal:
        await queue.enqueue(job_id)
    return {"jobId": job_id, "status": job.status.value}


@router.post(
    "/{job_id}/poll-task",
    response_model=PollTaskResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def poll_task(
    job_id: str,
    request: PollTaskRequest,
    manager: JobManager = Depends(get_job_manager_dep),
    poller: ExternalTaskPoller = Depends(get_task_poller_dep),
):
    """Check the provider task behind a job once."""
    status = await poller.poll(job_id, request.task_id)

    if status == ProviderStatus.PROCESSING:
        return PollTaskResponse(status=status)

    job = await manager.get(job_id)
    if status == ProviderStatus.COMPLETED:
        return PollTaskResponse(status=status, video_url=(job.output_data or {}).get("videoUrl"))
    return PollTaskResponse(status=status, error=job.error_message)
