"""Custom exception classes for DJ Visuals."""

from typing import Any, Optional


class DJVisualsError(Exception):
    """Base exception for all application errors."""

    pass


class InvalidInputError(DJVisualsError):
    """Request is missing required fields or has malformed values."""

    pass


class JobNotFoundError(DJVisualsError):
    """No job exists with the given id."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class InvalidTransitionError(DJVisualsError):
    """An update would move a job backward through its lifecycle."""

    pass


class GeneratorError(DJVisualsError):
    """Errors from a generator capability."""

    pass


class OpenAIAPIError(GeneratorError):
    """OpenAI API returned an error."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"OpenAI error {status_code}: {message}")


class RunwayAPIError(GeneratorError):
    """Runway API returned an error."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"Runway API error {status_code}: {message}")


class PollTimeoutError(DJVisualsError):
    """A bounded wait for a job ran out of attempts."""

    pass


class TransientProviderError(DJVisualsError):
    """Network-level failure talking to a provider while polling."""

    pass


class JobFailedError(DJVisualsError):
    """A polled job reached the failed state."""

    def __init__(self, message: str, job: Optional[Any] = None) -> None:
        self.job = job
        super().__init__(message)
