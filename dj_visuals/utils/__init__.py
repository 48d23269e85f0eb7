"""Utility modules for DJ Visuals."""

from dj_visuals.utils.errors import (
    DJVisualsError,
    GeneratorError,
    InvalidInputError,
    InvalidTransitionError,
    JobFailedError,
    JobNotFoundError,
    OpenAIAPIError,
    PollTimeoutError,
    RunwayAPIError,
    TransientProviderError,
)
from dj_visuals.utils.retry import with_retry

__all__ = [
    "DJVisualsError",
    "InvalidInputError",
    "JobNotFoundError",
    "InvalidTransitionError",
    "GeneratorError",
    "OpenAIAPIError",
    "RunwayAPIError",
    "PollTimeoutError",
    "TransientProviderError",
    "JobFailedError",
    "with_retry",
]
