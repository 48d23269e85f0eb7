"""Lookup of generator capabilities by job type."""

import logging
from typing import Dict, Iterable, Optional, Union

from dj_visuals.config import Settings
from dj_visuals.models.job import JobType
from dj_visuals.services.generators.base import Generator, ProviderAsyncGenerator
from dj_visuals.utils.errors import GeneratorError

logger = logging.getLogger(__name__)


class GeneratorRegistry:
    """Maps each job type to the generator that processes it."""

    def __init__(self, generators: Iterable[Generator]) -> None:
        self._generators: Dict[JobType, Generator] = {}
        for generator in generators:
            self._generators[generator.job_type] = generator

    def get(self, job_type: Union[str, JobType]) -> Generator:
        """
        Return the generator for a job type.

        Raises:
            GeneratorError: If no generator handles the type
        """
        try:
            return self._generators[JobType(job_type)]
        except (KeyError, ValueError):
            raise GeneratorError(f"Unknown job type: {job_type}")

    def get_provider_async(self, job_type: Union[str, JobType]) -> ProviderAsyncGenerator:
        generator = self.get(job_type)
        if not isinstance(generator, ProviderAsyncGenerator):
            raise GeneratorError(f"{generator.job_type.value} jobs have no external provider task")
        return generator


def create_generator_registry(settings: Optional[Settings] = None) -> GeneratorRegistry:
    """
    Create a GeneratorRegistry wired with explicit provider configuration.

    Args:
        settings: Application settings (defaults to the cached settings)

    Returns:
        Registry holding one generator per job type
    """
    from dj_visuals.agents import (
        create_image_prompt_agent,
        create_motion_prompt_agent,
        create_stylist_agent,
        create_track_analyst_agent,
    )
    from dj_visuals.config import get_settings
    from dj_visuals.services.generators.image import ImageGenerator
    from dj_visuals.services.generators.styles import StylesGenerator
    from dj_visuals.services.generators.track_info import TrackInfoGenerator
    from dj_visuals.services.generators.video import VideoGenerator

    settings = settings or get_settings()
    openai_config = settings.openai_config()
    timeout = settings.generator_timeout_seconds

    # Agents bind credentials at construction, so none are built without a key
    has_openai = bool(openai_config.api_key)
    if not has_openai:
        logger.warning("OPENAI_API_KEY is not set; styles, track-info and image jobs will fail")

    return GeneratorRegistry(
        [
            StylesGenerator(
                create_stylist_agent(openai_config) if has_openai else None,
                timeout=timeout,
            ),
            TrackInfoGenerator(
                create_track_analyst_agent(openai_config) if has_openai else None,
                timeout=timeout,
            ),
            ImageGenerator(
                openai_config,
                prompt_agent=create_image_prompt_agent(openai_config) if has_openai else None,
                timeout=timeout,
            ),
            VideoGenerator(
                settings.runway_config(),
                prompt_agent=create_motion_prompt_agent(openai_config) if has_openai else None,
                timeout=settings.video_submit_timeout_seconds,
            ),
        ]
    )
