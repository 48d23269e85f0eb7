"""Image generator using the OpenAI images API with a backend fallback chain."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from dj_visuals.agents.prompt_writer import build_image_prompt
from dj_visuals.config import OpenAIConfig
from dj_visuals.models.generation import ImageInput, ImageOutput
from dj_visuals.models.job import JobType
from dj_visuals.services.generators.base import DEFAULT_TIMEOUT_SECONDS, Generator
from dj_visuals.utils.errors import GeneratorError, OpenAIAPIError
from dj_visuals.utils.retry import with_retry

logger = logging.getLogger(__name__)

# Request options that differ per image model
BACKEND_OPTIONS: Dict[str, Dict[str, Any]] = {
    "gpt-image-1": {"size": "1536x1024", "quality": "high", "moderation": "auto"},
    "dall-e-3": {"size": "1792x1024", "quality": "hd"},
}


@dataclass
class ImageBackend:
    """One rendering model in the fallback chain."""

    model: str
    options: Dict[str, Any] = field(default_factory=dict)

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {"model": self.model, "prompt": prompt, "n": 1, **self.options}


def build_backends(models: List[str]) -> List[ImageBackend]:
    return [ImageBackend(model=m, options=dict(BACKEND_OPTIONS.get(m, {}))) for m in models]


class ImageGenerator(Generator):
    """Enhances a prompt and renders it, falling back to the next backend on rejection."""

    job_type = JobType.IMAGE
    input_model = ImageInput

    def __init__(
        self,
        config: OpenAIConfig,
        prompt_agent: Optional[Any] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize the ImageGenerator.

        Args:
            config: OpenAI connection details, ordered image models and retry policy
            prompt_agent: PydanticAI agent that rewrites prompts (optional)
            http_client: Shared httpx client (optional, one is opened per call otherwise)
            timeout: Upper bound in seconds for one generate call
        """
        super().__init__(timeout=timeout)
        self.config = config
        self.prompt_agent = prompt_agent
        self.http_client = http_client
        self.backends = build_backends(config.image_models)
        self.api_url = f"{config.base_url.rstrip('/')}/images/generations"
        self._request_image = with_retry(
            max_attempts=config.max_retry_attempts,
            base_delay=config.base_delay_seconds,
            exceptions=(httpx.ConnectError,),
        )(self._request_image_once)

    async def enhance_prompt(self, prompt: str) -> str:
        """Rewrite the prompt, keeping the original if the rewrite fails."""
        if self.prompt_agent is None:
            return prompt

        try:
            result = await self.prompt_agent.run(build_image_prompt(prompt))
        except Exception as e:
            logger.warning(f"Prompt enhancement failed, using original prompt: {e}")
            return prompt

        enhanced = (result.output or "").strip() if result else ""
        return enhanced or prompt

    async def _request_image_once(
        self, client: httpx.AsyncClient, backend: ImageBackend, prompt: str
    ) -> Dict[str, Any]:
        response = await client.post(
            self.api_url,
            json=backend.build_payload(prompt),
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
        )

        if not response.is_success:
            raise OpenAIAPIError(response.status_code, response.text)

        try:
            item = response.json()["data"][0]
        except (ValueError, KeyError, IndexError, TypeError):
            raise GeneratorError(f"Malformed {backend.model} response: {response.text[:200]}")

        if item.get("url"):
            image_url = item["url"]
        elif item.get("b64_json"):
            image_url = f"data:image/png;base64,{item['b64_json']}"
        else:
            raise GeneratorError(f"No image in {backend.model} response")

        return {"image_url": image_url, "revised_prompt": item.get("revised_prompt")}

    async def render(self, prompt: str) -> Tuple[Dict[str, Any], str]:
        """
        Render a prompt through the fallback chain.

        Returns:
            Tuple of (image data, model that satisfied the request)

        Raises:
            GeneratorError: If every backend failed
        """
        failures: List[str] = []
        client = self.http_client or httpx.AsyncClient(timeout=self.timeout)
        own_client = self.http_client is None

        try:
            for backend in self.backends:
                try:
                    image = await self._request_image(client, backend, prompt)
                    return image, backend.model
                except (GeneratorError, httpx.HTTPError) as e:
                    logger.warning(f"Image backend {backend.model} failed: {e}")
                    failures.append(f"{backend.model}: {e}")
        finally:
            if own_client:
                await client.aclose()

        raise GeneratorError(f"All image backends failed. {'; '.join(failures)}")

    async def _generate(self, params: ImageInput) -> Dict[str, Any]:
        if not self.config.api_key:
            raise GeneratorError("OpenAI API key not configured")

        # A regenerate request already carries the final prompt
        enhanced_prompt = params.prompt if params.regenerate else await self.enhance_prompt(params.prompt)

        image, model_used = await self.render(enhanced_prompt)
        if model_used != self.backends[0].model:
            logger.info(f"Image rendered by fallback backend {model_used}")

        return ImageOutput(
            image_url=image["image_url"],
            enhanced_prompt=enhanced_prompt,
            revised_prompt=image["revised_prompt"] or enhanced_prompt,
            model_used=model_used,
        ).model_dump(by_alias=True)
