"""Job processor: claims a job, runs its generator and records the outcome."""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from dj_visuals.models.job import Job, JobStatus
from dj_visuals.services.generators import Generator, GeneratorRegistry
from dj_visuals.services.job_manager import JobManager
from dj_visuals.utils.errors import GeneratorError, InvalidTransitionError

logger = logging.getLogger(__name__)

# Slack on top of the generator timeout for the owner's final write to land
STALE_GRACE_SECONDS = 30.0


class JobProcessor:
    """
    Dispatches a job to the generator for its type.

    Safe to call any number of times for the same job id: jobs that are
    terminal, already hold a provider task id, or were claimed recently are
    left alone. A job claimed by a worker that went silent for longer than
    its generator timeout is taken over and run again.
    """

    def __init__(
        self,
        manager: JobManager,
        generators: GeneratorRegistry,
        stale_grace: float = STALE_GRACE_SECONDS,
    ) -> None:
        self.manager = manager
        self.generators = generators
        self.stale_grace = stale_grace

    async def process(self, job_id: str) -> Job:
        """
        Process a job by id.

        Args:
            job_id: The job to process

        Returns:
            The job as stored after processing (or as found, for a no-op)

        Raises:
            JobNotFoundError: If no such job exists
        """
        job = await self.manager.get(job_id)

        if job.is_terminal:
            logger.info(f"Job {job_id} is already {job.status.value}; nothing to do")
            return job
        if job.task_id:
            logger.info(f"Job {job_id} already submitted as provider task {job.task_id}")
            return job

        try:
            generator = self.generators.get(job.type)
        except GeneratorError as e:
            return await self._fail(job_id, str(e))

        try:
            if job.status == JobStatus.PROCESSING:
                job = await self.manager.reclaim(job_id, stale_after=self.stale_after(generator))
            else:
                job = await self.manager.update(
                    job_id,
                    status=JobStatus.PROCESSING,
                    expected_status=JobStatus.PENDING,
                )
        except InvalidTransitionError as e:
            logger.info(f"Job {job_id} left to its current owner: {e}")
            return await self.manager.get(job_id)

        logger.info(f"Processing {job.type.value} job {job_id}")

        try:
            output = await asyncio.wait_for(
                generator.generate(job.input_data), timeout=generator.timeout
            )
        except GeneratorError as e:
            return await self._fail(job_id, str(e) or type(e).__name__)
        except asyncio.TimeoutError:
            return await self._fail(
                job_id, f"{job.type.value} generation timed out after {generator.timeout:g}s"
            )
        except Exception as e:
            logger.exception(f"Unexpected error processing job {job_id}")
            return await self._fail(job_id, f"Unexpected error: {e}")

        if generator.is_provider_async:
            # Provisional write: the provider still owns the work
            return await self._record(job_id, output_data=output)

        return await self._record(job_id, status=JobStatus.COMPLETED, output_data=output)

    def stale_after(self, generator: Generator) -> timedelta:
        """How long a claimed job may go unwritten before another worker takes it over."""
        return timedelta(seconds=generator.timeout + self.stale_grace)

    async def _fail(self, job_id: str, message: str) -> Job:
        logger.error(f"Job {job_id} failed: {message}")
        return await self._record(job_id, status=JobStatus.FAILED, error_message=message)

    async def _record(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        output_data: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> Job:
        try:
            return await self.manager.update(
                job_id,
                status=status,
                output_data=output_data,
                error_message=error_message,
            )
        except InvalidTransitionError as e:
            logger.warning(f"Discarding result for job {job_id}: {e}")
            return await self.manager.get(job_id)
