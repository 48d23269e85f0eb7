"""Track analyst agent configuration."""

from pydantic_ai import Agent

from dj_visuals.agents.chat_model import create_chat_model
from dj_visuals.config import OpenAIConfig
from dj_visuals.models.generation import TrackAnalysis

TRACK_ANALYST_SYSTEM_PROMPT = """
You are a music expert specializing in electronic and dance music.

Given a track, provide:
1. The estimated BPM (beats per minute) - a single number between 60 and 200
2. The song phases present, in the order they occur

PHASE VOCABULARY (use only these names): intro, buildup, drop, breakdown, outro

EXAMPLE:
{"bpm": 128, "phases": ["intro", "buildup", "drop", "breakdown", "outro"]}
"""


def create_track_analyst_agent(config: OpenAIConfig) -> Agent[None, TrackAnalysis]:
    return Agent(
        create_chat_model(config),
        system_prompt=TRACK_ANALYST_SYSTEM_PROMPT,
        output_type=TrackAnalysis,
        model_settings={"temperature": 0.3, "max_tokens": 200},
        retries=2,
    )
