"""Shared OpenAI chat model construction for the PydanticAI agents."""

from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from dj_visuals.config import OpenAIConfig


def create_chat_model(config: OpenAIConfig) -> OpenAIChatModel:
    """Build a chat model bound to explicit credentials instead of process env."""
    provider = OpenAIProvider(api_key=config.api_key, base_url=config.base_url)
    return OpenAIChatModel(config.chat_model, provider=provider)
