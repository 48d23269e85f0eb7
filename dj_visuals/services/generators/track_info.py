"""Track info generator: tempo and phase structure for a track."""

import math
from typing import Any, Dict, List, Optional

from dj_visuals.models.generation import (
    MAX_BPM,
    MIN_BPM,
    PHASES,
    TrackAnalysis,
    TrackInfoInput,
    TrackInfoOutput,
)
from dj_visuals.models.job import JobType
from dj_visuals.services.generators.base import DEFAULT_TIMEOUT_SECONDS, Generator
from dj_visuals.utils.errors import GeneratorError


def normalize_track_analysis(analysis: TrackAnalysis) -> Dict[str, Any]:
    """Clamp bpm into range and restrict phases to the known vocabulary."""
    if not math.isfinite(analysis.bpm):
        raise GeneratorError(f"Track analyst returned a non-numeric bpm: {analysis.bpm}")

    bpm = int(round(min(max(analysis.bpm, MIN_BPM), MAX_BPM)))

    phases: List[str] = []
    for phase in analysis.phases:
        name = phase.strip().lower()
        if name in PHASES and name not in phases:
            phases.append(name)

    return TrackInfoOutput(bpm=bpm, phases=phases or list(PHASES)).model_dump(by_alias=True)


class TrackInfoGenerator(Generator):
    job_type = JobType.TRACK_INFO
    input_model = TrackInfoInput

    def __init__(self, agent: Optional[Any], timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        super().__init__(timeout=timeout)
        self.agent = agent

    async def _generate(self, params: TrackInfoInput) -> Dict[str, Any]:
        if self.agent is None:
            raise GeneratorError("OpenAI API key not configured")

        prompt = f'Analyze the track "{params.track_name}" (visual style: {params.style}).'

        try:
            result = await self.agent.run(prompt)
        except Exception as e:
            raise GeneratorError(f"Track analysis failed: {e}")

        if not result or not result.output:
            raise GeneratorError("Track analyst agent returned no output")

        return normalize_track_analysis(result.output)
