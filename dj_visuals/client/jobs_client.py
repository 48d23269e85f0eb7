"""HTTP client for the DJ Visuals job API."""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from dj_visuals.client.polling import JobPoller, UpdateCallback
from dj_visuals.models.job import Job, JobType
from dj_visuals.services.generators.base import ProviderStatus
from dj_visuals.utils.errors import (
    DJVisualsError,
    InvalidInputError,
    InvalidTransitionError,
    JobNotFoundError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)


class JobsClient:
    """
    Talks to the job API and runs the create, process and poll flows.

    Also serves as the backend for JobPoller.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000/api",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
        poller: Optional[JobPoller] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout
        self.poller = poller or JobPoller(self)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, transport=self.transport, timeout=self.timeout
        )

    @staticmethod
    def _raise_for_error(response: httpx.Response, job_id: Optional[str] = None) -> None:
        if response.is_success:
            return
        try:
            detail = response.json().get("detail", response.text)
        except (ValueError, AttributeError):
            detail = response.text

        if response.status_code == 404 and job_id:
            raise JobNotFoundError(job_id)
        if response.status_code in (400, 422):
            raise InvalidInputError(str(detail))
        if response.status_code == 409:
            raise InvalidTransitionError(str(detail))
        if response.status_code == 503:
            raise TransientProviderError(str(detail))
        raise DJVisualsError(f"Job API error {response.status_code}: {detail}")

    # ==================== Poll backend ====================

    async def create_job(self, job_type: Union[str, JobType], input_data: Dict[str, Any]) -> str:
        """Create a job and return its id."""
        job_type = job_type.value if isinstance(job_type, JobType) else job_type
        async with self._client() as client:
            response = await client.post(
                "/jobs", json={"jobType": job_type, "inputData": input_data}
            )
        self._raise_for_error(response)
        return response.json()["jobId"]

    async def get_job(self, job_id: str) -> Job:
        async with self._client() as client:
            response = await client.get(f"/jobs/{job_id}")
        self._raise_for_error(response, job_id)
        return Job.from_wire(response.json())

    async def process_job(self, job_id: str) -> None:
        """Ask the service to process a job. Failures are logged, not raised."""
        try:
            async with self._client() as client:
                response = await client.post(f"/jobs/{job_id}/process")
            self._raise_for_error(response, job_id)
        except (httpx.HTTPError, DJVisualsError) as e:
            logger.warning(f"Could not trigger processing for job {job_id}: {e}")

    async def poll_task(self, job_id: str, task_id: str) -> ProviderStatus:
        """
        Ask the service to check a job's provider task once.

        Raises:
            TransientProviderError: If the service or provider is unreachable
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/jobs/{job_id}/poll-task", json={"taskId": task_id}
                )
        except httpx.TransportError as e:
            raise TransientProviderError(f"Failed to poll task {task_id}: {e}")

        self._raise_for_error(response, job_id)
        return ProviderStatus(response.json()["status"])

    # ==================== Flows ====================

    async def _run(
        self,
        job_type: JobType,
        input_data: Dict[str, Any],
        on_update: Optional[UpdateCallback] = None,
    ) -> Dict[str, Any]:
        job_id = await self.create_job(job_type, input_data)
        await self.process_job(job_id)
        job = await self.poller.poll_job(job_id, on_update=on_update)
        return job.output_data or {}

    async def get_styles(
        self,
        track_name: str,
        track_number: Optional[Union[int, str]] = None,
        track_artist: Optional[str] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> List[str]:
        """Suggest five visual styles for a track."""
        input_data: Dict[str, Any] = {"trackName": track_name}
        if track_number is not None:
            input_data["trackNumber"] = track_number
        if track_artist:
            input_data["trackArtist"] = track_artist

        output = await self._run(JobType.STYLES, input_data, on_update)
        return output.get("styles", [])

    async def get_track_info(
        self,
        track_name: str,
        style: str,
        on_update: Optional[UpdateCallback] = None,
    ) -> Dict[str, Any]:
        return await self._run(
            JobType.TRACK_INFO, {"trackName": track_name, "style": style}, on_update
        )

    async def generate_image(
        self,
        prompt: str,
        regenerate: bool = False,
        on_update: Optional[UpdateCallback] = None,
    ) -> Dict[str, Any]:
        return await self._run(
            JobType.IMAGE, {"prompt": prompt, "regenerate": regenerate}, on_update
        )

    async def generate_video(
        self,
        image_url: str,
        prompt: str,
        track_name: Optional[str] = None,
        bpm: Optional[int] = None,
        phase: Optional[str] = None,
        style: Optional[str] = None,
        on_update: Optional[UpdateCallback] = None,
        max_task_attempts: int = 30,
    ) -> Dict[str, Any]:
        """
        Animate an image into a video clip.

        Waits for the provider task id first, then polls the provider
        through the service until the clip is ready.
        """
        input_data: Dict[str, Any] = {"imageUrl": image_url, "prompt": prompt}
        optional = {"trackName": track_name, "bpm": bpm, "phase": phase, "style": style}
        input_data.update({k: v for k, v in optional.items() if v is not None})

        job_id = await self.create_job(JobType.VIDEO, input_data)
        await self.process_job(job_id)

        task_id = await self.poller.await_task_id(
            job_id,
            on_update=on_update,
            max_attempts=max_task_attempts,
            interval=self.poller.interval,
        )
        logger.info(f"Video job {job_id} submitted as provider task {task_id}")

        job = await self.poller.poll_video_job(job_id, task_id, on_update=on_update)
        return job.output_data or {}
