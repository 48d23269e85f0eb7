"""Video generator using the Runway image-to-video API.

Runway renders asynchronously: submitting a request returns a task id right
away and the finished clip is fetched later through ``check_task``.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from dj_visuals.agents.prompt_writer import build_motion_prompt
from dj_visuals.config import RunwayConfig
from dj_visuals.models.generation import VideoInput, VideoOutput
from dj_visuals.models.job import JobType
from dj_visuals.services.generators.base import (
    ProviderAsyncGenerator,
    ProviderStatus,
    ProviderTaskResult,
)
from dj_visuals.utils.errors import GeneratorError, RunwayAPIError, TransientProviderError
from dj_visuals.utils.retry import with_retry

logger = logging.getLogger(__name__)

SUCCEEDED_STATUSES = {"SUCCEEDED"}
FAILED_STATUSES = {"FAILED", "CANCELLED", "CANCELED"}
TRUNCATION_SUFFIX = "..."


def truncate_prompt(prompt: str, max_length: int) -> str:
    """
    Hard-cap a prompt at ``max_length`` characters (code points).

    Over-long prompts keep their first ``max_length - 3`` characters
    followed by an ellipsis.
    """
    if len(prompt) <= max_length:
        return prompt
    return prompt[: max_length - len(TRUNCATION_SUFFIX)] + TRUNCATION_SUFFIX


def _failure_reason(data: Dict[str, Any]) -> str:
    failure = data.get("failure")
    if isinstance(failure, dict):
        failure = failure.get("message")
    return failure or data.get("failureCode") or "Unknown error"


def _output_url(data: Dict[str, Any]) -> Optional[str]:
    output = data.get("output") or []
    if not output:
        return None
    first = output[0]
    if isinstance(first, dict):
        return first.get("url")
    return first


class VideoGenerator(ProviderAsyncGenerator):
    """Turns a still image into a short clip through Runway."""

    job_type = JobType.VIDEO
    input_model = VideoInput

    def __init__(
        self,
        config: RunwayConfig,
        prompt_agent: Optional[Any] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 90.0,
    ) -> None:
        """
        Initialize the VideoGenerator.

        Args:
            config: Runway connection details, request defaults and retry policy
            prompt_agent: PydanticAI agent that writes motion prompts (optional)
            http_client: Shared httpx client (optional, one is opened per call otherwise)
            timeout: Upper bound in seconds for one submit call
        """
        super().__init__(timeout=timeout)
        self.config = config
        self.prompt_agent = prompt_agent
        self.http_client = http_client
        self.base_url = config.base_url.rstrip("/")
        self._submit = with_retry(
            max_attempts=config.max_retry_attempts,
            base_delay=config.base_delay_seconds,
            exceptions=(httpx.ConnectError,),
        )(self._submit_once)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "X-Runway-Version": self.config.api_version,
        }

    async def write_motion_prompt(self, params: VideoInput) -> str:
        """Ask the prompt writer for a motion prompt, falling back to the caller's prompt."""
        if self.prompt_agent is None:
            return params.prompt

        request = build_motion_prompt(
            params.prompt,
            track_name=params.track_name,
            bpm=params.bpm,
            phase=params.phase,
            style=params.style,
        )
        try:
            result = await self.prompt_agent.run(request)
        except Exception as e:
            logger.warning(f"Motion prompt generation failed, using original prompt: {e}")
            return params.prompt

        text = (result.output or "").strip() if result else ""
        return text or params.prompt

    async def _submit_once(self, client: httpx.AsyncClient, image_url: str, video_prompt: str) -> str:
        response = await client.post(
            f"{self.base_url}/image_to_video",
            json={
                "model": self.config.model,
                "promptImage": image_url,
                "promptText": video_prompt,
                "duration": self.config.duration,
                "ratio": self.config.ratio,
            },
            headers=self._headers(),
        )

        if not response.is_success:
            raise RunwayAPIError(response.status_code, response.text)

        try:
            task_id = response.json().get("id")
        except (ValueError, AttributeError):
            raise GeneratorError(f"Malformed Runway response: {response.text[:200]}")

        if not task_id:
            raise GeneratorError("Runway response did not include a task id")
        return task_id

    async def _generate(self, params: VideoInput) -> Dict[str, Any]:
        if not self.config.api_key:
            raise GeneratorError("Runway API key not configured")

        video_prompt = truncate_prompt(
            await self.write_motion_prompt(params), self.config.max_prompt_length
        )

        client = self.http_client or httpx.AsyncClient(timeout=self.timeout)
        own_client = self.http_client is None
        try:
            task_id = await self._submit(client, params.image_url, video_prompt)
        except httpx.HTTPError as e:
            raise GeneratorError(f"HTTP error during video submission: {e}")
        finally:
            if own_client:
                await client.aclose()

        logger.info(f"Runway task created: {task_id}")
        return VideoOutput(
            task_id=task_id,
            status="processing",
            video_prompt=video_prompt,
        ).model_dump(by_alias=True, exclude_none=True)

    async def check_task(self, task_id: str) -> ProviderTaskResult:
        client = self.http_client or httpx.AsyncClient(timeout=30.0)
        own_client = self.http_client is None
        try:
            response = await client.get(f"{self.base_url}/tasks/{task_id}", headers=self._headers())
        except httpx.HTTPError as e:
            raise TransientProviderError(f"Runway status check failed: {e}")
        finally:
            if own_client:
                await client.aclose()

        if not response.is_success:
            raise TransientProviderError(
                f"Runway status check returned {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError:
            raise TransientProviderError("Runway status check returned a non-JSON body")
        if not isinstance(data, dict):
            raise TransientProviderError(f"Unexpected Runway status payload: {data!r}")

        provider_status = str(data.get("status", "")).upper()

        if provider_status in SUCCEEDED_STATUSES:
            video_url = _output_url(data)
            if not video_url:
                return ProviderTaskResult(
                    status=ProviderStatus.FAILED,
                    failure_reason="task succeeded without a video URL",
                    provider_status=provider_status,
                )
            return ProviderTaskResult(
                status=ProviderStatus.COMPLETED,
                output_url=video_url,
                provider_status=provider_status,
            )

        if provider_status in FAILED_STATUSES:
            return ProviderTaskResult(
                status=ProviderStatus.FAILED,
                failure_reason=_failure_reason(data),
                provider_status=provider_status,
            )

        return ProviderTaskResult(status=ProviderStatus.PROCESSING, provider_status=provider_status)

    def finalize_output(
        self,
        provisional: Optional[Dict[str, Any]],
        task_id: str,
        output_url: str,
    ) -> Dict[str, Any]:
        video_prompt = (provisional or {}).get("videoPrompt") or "Video generation completed"
        return VideoOutput(
            task_id=task_id,
            status="completed",
            video_prompt=video_prompt,
            video_url=output_url,
        ).model_dump(by_alias=True)

    def failure_message(self, reason: str) -> str:
        return f"Runway task failed: {reason}"
