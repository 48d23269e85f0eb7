"""Styles generator: five visual style labels for a track."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from dj_visuals.agents.stylist import build_stylist_prompt
from dj_visuals.models.generation import RAINBOW_VOMIT, StylesInput, StylesOutput
from dj_visuals.models.job import JobType
from dj_visuals.services.generators.base import DEFAULT_TIMEOUT_SECONDS, Generator
from dj_visuals.utils.errors import GeneratorError

logger = logging.getLogger(__name__)

GENERATED_STYLE_COUNT = 4


def finalize_styles(candidates: Iterable[Any]) -> List[str]:
    """
    Keep the first four distinct upstream labels and append the sentinel.

    Upstream copies of the sentinel are dropped so it always sits fifth.

    Raises:
        GeneratorError: If fewer than four usable labels were produced
    """
    labels: List[str] = []
    seen = {RAINBOW_VOMIT.lower()}

    for candidate in candidates:
        if not isinstance(candidate, str):
            continue
        label = candidate.strip()
        if not label or label.lower() in seen:
            continue
        seen.add(label.lower())
        labels.append(label)
        if len(labels) == GENERATED_STYLE_COUNT:
            break

    if len(labels) < GENERATED_STYLE_COUNT:
        raise GeneratorError(
            f"Stylist returned {len(labels)} usable styles, expected {GENERATED_STYLE_COUNT}"
        )

    return labels + [RAINBOW_VOMIT]


class StylesGenerator(Generator):
    """Suggests visual styles for a track using the stylist agent."""

    job_type = JobType.STYLES
    input_model = StylesInput

    def __init__(self, agent: Optional[Any], timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        """
        Initialize the StylesGenerator.

        Args:
            agent: PydanticAI agent whose output is StyleSuggestions
            timeout: Upper bound in seconds for one generate call
        """
        super().__init__(timeout=timeout)
        self.agent = agent

    async def _generate(self, params: StylesInput) -> Dict[str, Any]:
        if self.agent is None:
            raise GeneratorError("OpenAI API key not configured")

        prompt = build_stylist_prompt(
            params.track_name,
            track_number=params.track_number,
            track_artist=params.track_artist,
        )

        try:
            result = await self.agent.run(prompt)
        except Exception as e:
            raise GeneratorError(f"Style generation failed: {e}")

        if not result or not result.output:
            raise GeneratorError("Stylist agent returned no output")

        styles = finalize_styles(result.output.styles)
        logger.debug(f"Styles for {params.track_name!r}: {styles}")
        return StylesOutput(styles=styles).model_dump(by_alias=True)
