"""PydanticAI agent configurations for the text generators."""

from dj_visuals.agents.prompt_writer import (
    IMAGE_PROMPT_SYSTEM_PROMPT,
    MOTION_PROMPT_SYSTEM_PROMPT,
    create_image_prompt_agent,
    create_motion_prompt_agent,
)
from dj_visuals.agents.stylist import STYLIST_SYSTEM_PROMPT, create_stylist_agent
from dj_visuals.agents.track_analyst import TRACK_ANALYST_SYSTEM_PROMPT, create_track_analyst_agent

__all__ = [
    "create_stylist_agent",
    "create_track_analyst_agent",
    "create_image_prompt_agent",
    "create_motion_prompt_agent",
    "STYLIST_SYSTEM_PROMPT",
    "TRACK_ANALYST_SYSTEM_PROMPT",
    "IMAGE_PROMPT_SYSTEM_PROMPT",
    "MOTION_PROMPT_SYSTEM_PROMPT",
]
