"""Client-side poll loops that wait for jobs to settle."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol, Union

from dj_visuals.models.job import Job, JobStatus
from dj_visuals.services.generators.base import ProviderStatus
from dj_visuals.utils.errors import (
    InvalidInputError,
    JobFailedError,
    PollTimeoutError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Job failed"

UpdateCallback = Callable[[Job], Union[None, Awaitable[None]]]


class PollBackend(Protocol):
    """What a poll loop needs from the job service."""

    async def get_job(self, job_id: str) -> Job: ...

    async def poll_task(self, job_id: str, task_id: str) -> ProviderStatus: ...


async def _notify(on_update: Optional[UpdateCallback], job: Job) -> None:
    if on_update is None:
        return
    result = on_update(job)
    if asyncio.iscoroutine(result):
        await result


def _raise_failed(job: Job) -> None:
    raise JobFailedError(job.error_message or DEFAULT_FAILURE_MESSAGE, job=job)


class JobPoller:
    """
    Repeatedly reads job state until it settles.

    Each loop is independent; several may watch the same job without
    coordinating.
    """

    def __init__(
        self,
        backend: PollBackend,
        interval: float = 2.0,
        video_interval: float = 5.0,
    ) -> None:
        self.backend = backend
        self.interval = interval
        self.video_interval = video_interval

    async def poll_job(self, job_id: str, on_update: Optional[UpdateCallback] = None) -> Job:
        """
        Wait for a job to complete.

        Returns:
            The completed job

        Raises:
            JobFailedError: If the job fails
        """
        while True:
            job = await self.backend.get_job(job_id)
            await _notify(on_update, job)

            if job.status == JobStatus.COMPLETED:
                return job
            if job.status == JobStatus.FAILED:
                _raise_failed(job)

            await asyncio.sleep(self.interval)

    async def poll_video_job(
        self,
        job_id: str,
        provider_task_id: str,
        on_update: Optional[UpdateCallback] = None,
    ) -> Job:
        """
        Wait for a provider-async job, asking the service to check the
        provider task on each round.

        The store is read first so a job finished by another poller is
        returned without querying the provider. Transient provider errors
        are retried after the usual delay.

        Raises:
            JobFailedError: If the job fails, carrying the recorded message
        """
        while True:
            job = await self.backend.get_job(job_id)
            await _notify(on_update, job)

            if job.status == JobStatus.COMPLETED:
                return job
            if job.status == JobStatus.FAILED:
                _raise_failed(job)

            try:
                status = await self.backend.poll_task(job_id, provider_task_id)
            except TransientProviderError as e:
                logger.warning(f"Polling task {provider_task_id} for job {job_id} failed, retrying: {e}")
                await asyncio.sleep(self.video_interval)
                continue

            if status in (ProviderStatus.COMPLETED, ProviderStatus.FAILED):
                job = await self.backend.get_job(job_id)
                await _notify(on_update, job)
                if job.status == JobStatus.FAILED:
                    _raise_failed(job)
                if job.status == JobStatus.COMPLETED:
                    return job

            await asyncio.sleep(self.video_interval)

    async def await_task_id(
        self,
        job_id: str,
        on_update: Optional[UpdateCallback] = None,
        max_attempts: int = 30,
        interval: float = 2.0,
    ) -> str:
        """
        Wait for a provider-async job to record its provider task id.

        Args:
            job_id: The job to watch
            on_update: Called with the job after every fetch
            max_attempts: Number of fetches before giving up
            interval: Seconds between fetches

        Returns:
            The provider task id

        Raises:
            JobFailedError: If the job fails before a task id appears
            PollTimeoutError: After max_attempts fetches without a task id
        """
        for attempt in range(max_attempts):
            job = await self.backend.get_job(job_id)
            await _notify(on_update, job)

            if job.status == JobStatus.FAILED:
                _raise_failed(job)
            if job.task_id:
                return job.task_id
            if job.status == JobStatus.COMPLETED:
                raise InvalidInputError(f"Job {job_id} completed without a provider task id")

            if attempt < max_attempts - 1:
                await asyncio.sleep(interval)

        raise PollTimeoutError(
            f"Job {job_id} has no provider task id after {max_attempts} attempts"
        )
