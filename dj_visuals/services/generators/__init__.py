"""Generator capabilities, one per job type."""

from dj_visuals.services.generators.base import (
    Generator,
    GeneratorMode,
    ProviderAsyncGenerator,
    ProviderStatus,
    ProviderTaskResult,
)
from dj_visuals.services.generators.image import ImageGenerator
from dj_visuals.services.generators.registry import GeneratorRegistry, create_generator_registry
from dj_visuals.services.generators.styles import StylesGenerator
from dj_visuals.services.generators.track_info import TrackInfoGenerator
from dj_visuals.services.generators.video import VideoGenerator

__all__ = [
    "Generator",
    "GeneratorMode",
    "ProviderAsyncGenerator",
    "ProviderStatus",
    "ProviderTaskResult",
    "GeneratorRegistry",
    "create_generator_registry",
    "StylesGenerator",
    "TrackInfoGenerator",
    "ImageGenerator",
    "VideoGenerator",
]
