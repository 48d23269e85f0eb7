"""Generator capability contract shared by every job type."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from dj_visuals.models.job import JobType
from dj_visuals.utils.errors import GeneratorError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0


class GeneratorMode(str, Enum):
    """How a generator's result becomes final."""

    SYNCHRONOUS = "synchronous"
    PROVIDER_ASYNC = "provider-async"


class ProviderStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ProviderTaskResult:
    """Snapshot of an external provider task."""

    status: ProviderStatus
    output_url: Optional[str] = None
    failure_reason: Optional[str] = None
    provider_status: Optional[str] = None


class Generator(ABC):
    """
    One unit of real work for a job type.

    Subclasses declare the job type they serve and the pydantic model their
    input must satisfy, and implement ``_generate``.
    """

    job_type: ClassVar[JobType]
    input_model: ClassVar[Type[BaseModel]]
    mode: ClassVar[GeneratorMode] = GeneratorMode.SYNCHRONOUS

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    @property
    def is_provider_async(self) -> bool:
        return self.mode == GeneratorMode.PROVIDER_ASYNC

    def parse_input(self, input_data: Dict[str, Any]) -> Any:
        try:
            return self.input_model.model_validate(input_data)
        except ValidationError as e:
            raise GeneratorError(f"Invalid input for {self.job_type.value} job: {e}")

    async def generate(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run the generator against a job's input data.

        Returns:
            Output data for the job

        Raises:
            GeneratorError: If the input is unusable or the provider call fails
        """
        params = self.parse_input(input_data)
        return await self._generate(params)

    @abstractmethod
    async def _generate(self, params: Any) -> Dict[str, Any]:
        ...


class ProviderAsyncGenerator(Generator):
    """
    Generator whose provider finishes the work after ``generate`` returns.

    ``generate`` returns a provisional output holding the provider task id;
    the External Task Poller later calls ``check_task`` and writes the final
    output built by ``finalize_output``.
    """

    mode: ClassVar[GeneratorMode] = GeneratorMode.PROVIDER_ASYNC

    @abstractmethod
    async def check_task(self, task_id: str) -> ProviderTaskResult:
        """
        Query the provider for a task.

        Raises:
            TransientProviderError: If the provider could not be reached
        """
        ...

    @abstractmethod
    def finalize_output(
        self,
        provisional: Optional[Dict[str, Any]],
        task_id: str,
        output_url: str,
    ) -> Dict[str, Any]:
        ...

    @abstractmethod
    def failure_message(self, reason: str) -> str:
        ...
