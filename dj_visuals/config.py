"""Application settings from environment variables."""

from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class OpenAIConfig(BaseModel):
    """Connection details handed to the OpenAI-backed generators."""

    api_key: str
    base_url: str = "https://api.openai.com/v1"
    chat_model: str = "gpt-4o"
    image_models: List[str] = ["gpt-image-1", "dall-e-3"]
    max_retry_attempts: int = 3
    base_delay_seconds: float = 1.0


class RunwayConfig(BaseModel):
    """Connection details handed to the Runway video generator."""

    api_key: str
    base_url: str = "https://api.dev.runwayml.com/v1"
    api_version: str = "2024-11-06"
    model: str = "gen4_turbo"
    duration: int = 5
    ratio: str = "1280:720"
    max_prompt_length: int = 1000
    max_retry_attempts: int = 3
    base_delay_seconds: float = 1.0


class Settings(BaseSettings):
    """Application settings from environment."""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # OpenAI
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    chat_model: str = "gpt-4o"
    image_models: List[str] = ["gpt-image-1", "dall-e-3"]

    # Runway
    runway_api_key: str = ""
    runway_base_url: str = "https://api.dev.runwayml.com/v1"
    runway_api_version: str = "2024-11-06"
    runway_model: str = "gen4_turbo"
    video_duration: int = 5
    video_ratio: str = "1280:720"
    max_video_prompt_length: int = 1000

    # Job processing
    generator_timeout_seconds: float = 120.0
    video_submit_timeout_seconds: float = 90.0
    worker_count: int = 2
    recovery_interval_seconds: float = 60.0

    # Configuration
    log_level: str = "INFO"
    max_retry_attempts: int = 3
    base_delay_seconds: float = 1.0

    model_config = {"env_file": ".env", "extra": "ignore"}

    def openai_config(self) -> OpenAIConfig:
        return OpenAIConfig(
            api_key=self.openai_api_key,
            base_url=self.openai_base_url,
            chat_model=self.chat_model,
            image_models=self.image_models,
            max_retry_attempts=self.max_retry_attempts,
            base_delay_seconds=self.base_delay_seconds,
        )

    def runway_config(self) -> RunwayConfig:
        return RunwayConfig(
            api_key=self.runway_api_key,
            base_url=self.runway_base_url,
            api_version=self.runway_api_version,
            model=self.runway_model,
            duration=self.video_duration,
            ratio=self.video_ratio,
            max_prompt_length=self.max_video_prompt_length,
            max_retry_attempts=self.max_retry_attempts,
            base_delay_seconds=self.base_delay_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
