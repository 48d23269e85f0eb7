"""Job manager: the single writer of job records."""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Type, Union
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from dj_visuals.models.generation import ImageInput, StylesInput, TrackInfoInput, VideoInput
from dj_visuals.models.job import (
    TERMINAL_STATUSES,
    Job,
    JobStatus,
    JobType,
    allowed_predecessors,
    can_transition,
    utcnow,
)
from dj_visuals.services.database import JobStore
from dj_visuals.utils.errors import InvalidInputError, InvalidTransitionError, JobNotFoundError

logger = logging.getLogger(__name__)

INPUT_MODELS: Dict[JobType, Type[BaseModel]] = {
    JobType.STYLES: StylesInput,
    JobType.TRACK_INFO: TrackInfoInput,
    JobType.IMAGE: ImageInput,
    JobType.VIDEO: VideoInput,
}

DEFAULT_FAILURE_MESSAGE = "Job failed without an error message"

# Output key holding a playable media URL; written once, on completion
MEDIA_URL_KEY = "videoUrl"


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ())) or "inputData"
        parts.append(f"{loc}: {error.get('msg')}")
    return "; ".join(parts)


def parse_job_type(job_type: Union[str, JobType]) -> JobType:
    try:
        return JobType(job_type)
    except ValueError:
        raise InvalidInputError(f"Unknown job type: {job_type}")


class JobManager:
    """Creates, reads and updates jobs while enforcing the lifecycle rules."""

    def __init__(self, store: JobStore) -> None:
        self.store = store

    async def create(self, job_type: Union[str, JobType], input_data: Optional[Dict[str, Any]]) -> str:
        """
        Create a pending job.

        Args:
            job_type: One of the JobType values
            input_data: Payload for the generator handling this type

        Returns:
            The new job id

        Raises:
            InvalidInputError: If the type is unknown or the payload is missing/malformed
        """
        parsed_type = parse_job_type(job_type)

        if not input_data or not isinstance(input_data, dict):
            raise InvalidInputError("jobType and inputData are required")

        try:
            INPUT_MODELS[parsed_type].model_validate(input_data)
        except ValidationError as e:
            raise InvalidInputError(
                f"Invalid inputData for {parsed_type.value} job: {_describe_validation_error(e)}"
            )

        now = utcnow()
        job = Job(
            id=str(uuid4()),
            type=parsed_type,
            status=JobStatus.PENDING,
            input_data=input_data,
            created_at=now,
            updated_at=now,
        )
        await self.store.insert_job(job.to_row())

        logger.info(f"Created {parsed_type.value} job {job.id}")
        return job.id

    async def get(self, job_id: str) -> Job:
        """
        Fetch a job by id.

        Raises:
            JobNotFoundError: If no such job exists
        """
        row = await self.store.fetch_job(job_id)
        if row is None:
            raise JobNotFoundError(job_id)
        return Job.from_row(row)

    async def update(
        self,
        job_id: str,
        status: Optional[Union[str, JobStatus]] = None,
        output_data: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
        expected_status: Optional[JobStatus] = None,
    ) -> Job:
        """
        Apply a partial update to a job.

        Only the supplied fields change. A terminal status stamps
        ``completed_at``. The store write is conditional on the job still
        being in a status the transition may start from, so of two racing
        writers only the legal one lands.

        ``expected_status`` narrows the guard further: the update only lands
        while the job is in exactly that status. The processor uses it to
        claim a pending job.

        Raises:
            JobNotFoundError: If no such job exists
            InvalidTransitionError: If the update would regress the job,
                touch a terminal job, change its provider task id, or
                write a media URL other than once on completion
            InvalidInputError: If the status value is unknown or an error
                message is supplied without status=failed
        """
        new_status: Optional[JobStatus] = None
        if status is not None:
            try:
                new_status = JobStatus(status)
            except ValueError:
                raise InvalidInputError(f"Unknown job status: {status}")

        if error_message is not None and new_status != JobStatus.FAILED:
            raise InvalidInputError("errorMessage may only accompany status=failed")

        current = await self.get(job_id)

        if not can_transition(current.status, new_status) or (
            expected_status is not None and current.status != expected_status
        ):
            target = new_status.value if new_status else current.status.value
            raise InvalidTransitionError(
                f"Job {job_id} cannot move from {current.status.value} to {target}"
            )

        if output_data is not None:
            if current.task_id and output_data.get("taskId") != current.task_id:
                raise InvalidTransitionError(
                    f"Job {job_id} already carries provider task {current.task_id}"
                )
            recorded_url = (current.output_data or {}).get(MEDIA_URL_KEY)
            if recorded_url and output_data.get(MEDIA_URL_KEY) != recorded_url:
                raise InvalidTransitionError(f"Job {job_id} already holds a media URL")
            # A media URL only ever lands together with completion
            if output_data.get(MEDIA_URL_KEY) and new_status != JobStatus.COMPLETED:
                raise InvalidTransitionError(
                    f"Job {job_id} can only receive a media URL with status=completed"
                )

        if new_status == JobStatus.FAILED and not error_message:
            error_message = DEFAULT_FAILURE_MESSAGE

        now = utcnow()
        data: Dict[str, Any] = {"updated_at": now.isoformat()}
        if new_status is not None:
            data["status"] = new_status.value
        if output_data is not None:
            data["output_data"] = output_data
        if error_message is not None:
            data["error_message"] = error_message
        if new_status in TERMINAL_STATUSES:
            data["completed_at"] = now.isoformat()

        row = await self.store.update_job(
            job_id,
            data,
            status_in=(
                [expected_status.value]
                if expected_status is not None
                else [s.value for s in allowed_predecessors(new_status)]
            ),
        )
        if row is None:
            latest = await self.store.fetch_job(job_id)
            if latest is None:
                raise JobNotFoundError(job_id)
            raise InvalidTransitionError(
                f"Job {job_id} moved to {latest['status']} before the update landed"
            )

        updated = Job.from_row(row)
        if new_status is not None and new_status != current.status:
            logger.info(f"Job {job_id}: {current.status.value} -> {new_status.value}")
        return updated

    async def reclaim(self, job_id: str, stale_after: timedelta) -> Job:
        """
        Take over a processing job whose worker stopped without recording a result.

        Only a job still processing, with no provider task, and left
        untouched for longer than ``stale_after`` qualifies. The write is
        conditional on the ``updated_at`` that was read, so of two racing
        reclaimers only one wins.

        Raises:
            JobNotFoundError: If no such job exists
            InvalidTransitionError: If the job does not qualify or was
                reclaimed elsewhere first
        """
        row = await self.store.fetch_job(job_id)
        if row is None:
            raise JobNotFoundError(job_id)
        current = Job.from_row(row)

        if current.status != JobStatus.PROCESSING or current.task_id:
            raise InvalidTransitionError(
                f"Job {job_id} is {current.status.value} and cannot be reclaimed"
            )
        idle = utcnow() - current.updated_at
        if idle < stale_after:
            raise InvalidTransitionError(
                f"Job {job_id} is still being processed ({idle.total_seconds():.0f}s since last write)"
            )

        claimed = await self.store.update_job(
            job_id,
            {"updated_at": utcnow().isoformat()},
            status_in=[JobStatus.PROCESSING.value],
            updated_at=row["updated_at"],
        )
        if claimed is None:
            raise InvalidTransitionError(f"Job {job_id} was reclaimed elsewhere")

        logger.warning(f"Reclaimed job {job_id} after {idle.total_seconds():.0f}s without progress")
        return Job.from_row(claimed)

    async def list_by_status(self, status: JobStatus, limit: int = 100) -> List[Job]:
        rows = await self.store.list_jobs_by_status(status.value, limit=limit)
        return [Job.from_row(row) for row in rows]
