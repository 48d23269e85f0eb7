"""External task poller for generators whose provider finishes asynchronously."""

import logging

from dj_visuals.models.job import JobStatus
from dj_visuals.services.generators import GeneratorRegistry, ProviderStatus
from dj_visuals.services.job_manager import JobManager
from dj_visuals.utils.errors import GeneratorError, InvalidInputError, InvalidTransitionError

logger = logging.getLogger(__name__)

_STORED_TO_PROVIDER = {
    JobStatus.COMPLETED: ProviderStatus.COMPLETED,
    JobStatus.FAILED: ProviderStatus.FAILED,
}


class ExternalTaskPoller:
    """Checks a provider task once and folds a terminal result into the job."""

    def __init__(self, manager: JobManager, generators: GeneratorRegistry) -> None:
        self.manager = manager
        self.generators = generators

    async def poll(self, job_id: str, provider_task_id: str) -> ProviderStatus:
        """
        Query the provider for a job's task.

        Args:
            job_id: The job that owns the task
            provider_task_id: Provider-issued task id

        Returns:
            ProviderStatus after this check

        Raises:
            JobNotFoundError: If no such job exists
            InvalidInputError: If the job type has no provider task or the
                task id belongs to another job
            TransientProviderError: If the provider could not be reached;
                the job is left untouched
        """
        job = await self.manager.get(job_id)
        if job.is_terminal:
            return _STORED_TO_PROVIDER[job.status]

        try:
            generator = self.generators.get_provider_async(job.type)
        except GeneratorError as e:
            raise InvalidInputError(str(e))

        if job.task_id is None:
            raise InvalidInputError(f"Job {job_id} has not been submitted to the provider yet")
        if job.task_id != provider_task_id:
            raise InvalidInputError(
                f"Task {provider_task_id} does not belong to job {job_id}"
            )

        result = await generator.check_task(provider_task_id)

        try:
            if result.status == ProviderStatus.COMPLETED:
                await self.manager.update(
                    job_id,
                    status=JobStatus.COMPLETED,
                    output_data=generator.finalize_output(
                        job.output_data, provider_task_id, result.output_url
                    ),
                )
                logger.info(f"Provider task {provider_task_id} for job {job_id} completed")
            elif result.status == ProviderStatus.FAILED:
                await self.manager.update(
                    job_id,
                    status=JobStatus.FAILED,
                    error_message=generator.failure_message(result.failure_reason or "Unknown error"),
                )
                logger.warning(
                    f"Provider task {provider_task_id} for job {job_id} failed: {result.failure_reason}"
                )
            else:
                logger.debug(
                    f"Provider task {provider_task_id} still running ({result.provider_status})"
                )
        except InvalidTransitionError:
            # Another poller finalized the job first
            latest = await self.manager.get(job_id)
            return _STORED_TO_PROVIDER.get(latest.status, ProviderStatus.PROCESSING)

        return result.status
