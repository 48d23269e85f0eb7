"""Pytest fixtures for DJ Visuals tests."""

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from dj_visuals.config import OpenAIConfig, RunwayConfig
from dj_visuals.models.generation import StyleSuggestions, TrackAnalysis
from dj_visuals.services.database import JobStore
from dj_visuals.services.generators import (
    GeneratorRegistry,
    ImageGenerator,
    StylesGenerator,
    TrackInfoGenerator,
    VideoGenerator,
)
from dj_visuals.services.job_manager import JobManager
from dj_visuals.services.processor import JobProcessor
from dj_visuals.services.task_poller import ExternalTaskPoller


# ==================== In-memory Supabase ====================


@dataclass
class MockResult:
    data: List[Dict[str, Any]]


class MockQuery:
    """Chainable stand-in for a supabase-py table query."""

    def __init__(self, rows: List[Dict[str, Any]]) -> None:
        self._rows = rows
        self._action = "select"
        self._payload: Optional[Dict[str, Any]] = None
        self._filters: List[Any] = []
        self._limit: Optional[int] = None

    def select(self, *columns: str) -> "MockQuery":
        self._action = "select"
        return self

    def insert(self, row: Dict[str, Any]) -> "MockQuery":
        self._action = "insert"
        self._payload = row
        return self

    def update(self, data: Dict[str, Any]) -> "MockQuery":
        self._action = "update"
        self._payload = data
        return self

    def eq(self, column: str, value: Any) -> "MockQuery":
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column: str, values: List[Any]) -> "MockQuery":
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def limit(self, count: int) -> "MockQuery":
        self._limit = count
        return self

    def _matching(self) -> List[Dict[str, Any]]:
        return [row for row in self._rows if all(f(row) for f in self._filters)]

    def execute(self) -> MockResult:
        if self._action == "insert":
            row = copy.deepcopy(self._payload)
            self._rows.append(row)
            return MockResult(data=[copy.deepcopy(row)])

        matched = self._matching()
        if self._action == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))

        if self._limit is not None:
            matched = matched[: self._limit]
        return MockResult(data=[copy.deepcopy(row) for row in matched])


class MockSupabaseClient:
    """Keeps each table as a list of row dicts."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}

    def table(self, name: str) -> MockQuery:
        return MockQuery(self.tables.setdefault(name, []))


# ==================== Agent doubles ====================


def agent_returning(output: Any) -> MagicMock:
    """A PydanticAI agent double whose run() resolves to ``output``."""
    agent = MagicMock()
    agent.run = AsyncMock(return_value=MagicMock(output=output))
    return agent


def failing_agent(error: Exception) -> MagicMock:
    agent = MagicMock()
    agent.run = AsyncMock(side_effect=error)
    return agent


# ==================== Fixtures ====================


@pytest.fixture
def supabase_client() -> MockSupabaseClient:
    return MockSupabaseClient()


@pytest.fixture
def job_store(supabase_client: MockSupabaseClient) -> JobStore:
    return JobStore(supabase_client=supabase_client)


@pytest.fixture
def job_manager(job_store: JobStore) -> JobManager:
    return JobManager(job_store)


@pytest.fixture
def manager_factory():
    """Fresh JobManager over an empty store, for use inside @given tests."""

    def build() -> JobManager:
        return JobManager(JobStore(supabase_client=MockSupabaseClient()))

    return build


@pytest.fixture
def openai_config() -> OpenAIConfig:
    return OpenAIConfig(api_key="sk-test")


@pytest.fixture
def runway_config() -> RunwayConfig:
    return RunwayConfig(api_key="rw-test", base_url="https://runway.test/v1")


@pytest.fixture
def make_agent():
    return agent_returning


@pytest.fixture
def make_failing_agent():
    return failing_agent


@pytest.fixture
def stylist_agent() -> MagicMock:
    return agent_returning(
        StyleSuggestions(styles=["Neon Cyberpunk", "Dreamy Pastels", "Dark Techno", "Retro Synthwave"])
    )


@pytest.fixture
def track_analyst_agent() -> MagicMock:
    return agent_returning(TrackAnalysis(bpm=128, phases=["intro", "buildup", "drop", "outro"]))


@pytest.fixture
def sample_styles_input() -> dict:
    return {"trackNumber": 1, "trackName": "Midnight Dreams", "trackArtist": "Luna"}


@pytest.fixture
def sample_video_input() -> dict:
    return {
        "imageUrl": "https://images.test/frame.png",
        "prompt": "slow drift through neon fog",
        "trackName": "Midnight Dreams",
        "bpm": 128,
        "phase": "drop",
    }


@pytest.fixture
def registry_factory(openai_config: OpenAIConfig, runway_config: RunwayConfig):
    """Build a GeneratorRegistry, overriding any generator by keyword."""

    def build(
        styles: Optional[Any] = None,
        track_info: Optional[Any] = None,
        image: Optional[Any] = None,
        video: Optional[Any] = None,
    ) -> GeneratorRegistry:
        return GeneratorRegistry(
            [
                styles or StylesGenerator(None),
                track_info or TrackInfoGenerator(None),
                image or ImageGenerator(openai_config),
                video or VideoGenerator(runway_config),
            ]
        )

    return build


@pytest.fixture
def processor_factory(job_manager: JobManager, registry_factory):
    def build(**generators: Any) -> JobProcessor:
        return JobProcessor(job_manager, registry_factory(**generators))

    return build


@pytest.fixture
def task_poller_factory(job_manager: JobManager, registry_factory):
    def build(**generators: Any) -> ExternalTaskPoller:
        return ExternalTaskPoller(job_manager, registry_factory(**generators))

    return build
