"""Stylist agent configuration.

The stylist proposes visual styles for a track in a DJ set.
"""

from typing import Optional, Union

from pydantic_ai import Agent

from dj_visuals.agents.chat_model import create_chat_model
from dj_visuals.config import OpenAIConfig
from dj_visuals.models.generation import StyleSuggestions

STYLIST_SYSTEM_PROMPT = """
You are a creative visual artist specializing in DJ performance visuals.

TASK: Given a track, suggest unique and creative visual styles for the
background visuals played while it is on.

RULES:
- Each style must be visually distinct and suitable for live DJ visuals
- Each style name is 3-5 words long
- Suggest exactly 4 styles
- Do not suggest "Rainbow Vomit"; it is always added separately

EXAMPLE:
["Cyberpunk Neon Dreams", "Abstract Geometric Patterns", "Ethereal Space Journey", "Psychedelic Color Waves"]
"""


def build_stylist_prompt(
    track_name: str,
    track_number: Optional[Union[int, str]] = None,
    track_artist: Optional[str] = None,
) -> str:
    if track_artist:
        track = f'"{track_name}" by {track_artist}'
    else:
        track = f'"{track_name}" (Track #{track_number})'
    return f"Suggest visual styles for the track {track}."


def create_stylist_agent(config: OpenAIConfig) -> Agent[None, StyleSuggestions]:
    """Create the stylist agent.

    Returns:
        A PydanticAI Agent returning StyleSuggestions.
    """
    return Agent(
        create_chat_model(config),
        system_prompt=STYLIST_SYSTEM_PROMPT,
        output_type=StyleSuggestions,
        model_settings={"temperature": 0.8, "max_tokens": 200},
        retries=2,
    )
