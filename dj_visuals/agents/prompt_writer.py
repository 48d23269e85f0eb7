"""Prompt writer agents for image and video generation.

Both agents rewrite a short user description into a richer prompt for a
media model. Their output is plain text.
"""

from typing import Optional

from pydantic_ai import Agent

from dj_visuals.agents.chat_model import create_chat_model
from dj_visuals.config import OpenAIConfig

IMAGE_PROMPT_SYSTEM_PROMPT = """
You are an expert at creating detailed image prompts for AI art generation.
Enhance the given prompt with rich visual details, lighting, composition and
artistic style while keeping it under 1000 characters.

IMPORTANT: Do not include any DJs, stages, performers or people in the visual.
Focus on abstract visuals, colors, patterns and atmospheric elements that work
as background visuals.

Reply with the enhanced prompt only.
"""

MOTION_PROMPT_SYSTEM_PROMPT = """
You are an expert at creating prompts for AI video generation. Write a prompt
that describes motion and animation for abstract background visuals.

IMPORTANT: Do not include any DJs, stages, performers or people in the visual.
Focus on abstract motion, colors, patterns and atmospheric elements, keep it
under 1000 characters.

Reply with the prompt only.
"""


def build_image_prompt(prompt: str) -> str:
    return f"Enhance this prompt for a background visual (no people, no DJ, no stage): {prompt}"


def build_motion_prompt(
    prompt: str,
    track_name: Optional[str] = None,
    bpm: Optional[float] = None,
    phase: Optional[str] = None,
    style: Optional[str] = None,
) -> str:
    return f"""Create a video generation prompt for this abstract background visual (no people, no DJ, no stage):
Track: {track_name or "Unknown"}
BPM: {bpm if bpm is not None else "Unknown"}
Phase: {phase or "Unknown"}
Style: {style or "Unknown"}
Base description: {prompt}

Focus on abstract motion, rhythm, and dynamic visual elements that sync with the music tempo."""


def create_image_prompt_agent(config: OpenAIConfig) -> Agent[None, str]:
    return Agent(
        create_chat_model(config),
        system_prompt=IMAGE_PROMPT_SYSTEM_PROMPT,
        output_type=str,
        model_settings={"temperature": 0.7, "max_tokens": 300},
    )


def create_motion_prompt_agent(config: OpenAIConfig) -> Agent[None, str]:
    return Agent(
        create_chat_model(config),
        system_prompt=MOTION_PROMPT_SYSTEM_PROMPT,
        output_type=str,
        model_settings={"temperature": 0.7, "max_tokens": 150},
    )
