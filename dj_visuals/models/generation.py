"""Input and output payloads for each generator capability."""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

RAINBOW_VOMIT = "Rainbow Vomit"

Phase = Literal["intro", "buildup", "drop", "breakdown", "outro"]
PHASES: List[str] = ["intro", "buildup", "drop", "breakdown", "outro"]

MIN_BPM = 60
MAX_BPM = 200


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ==================== Inputs ====================


class StylesInput(_CamelModel):
    """A track to suggest visual styles for."""

    track_number: Optional[Union[int, str]] = Field(default=None, alias="trackNumber")
    track_name: str = Field(min_length=1, alias="trackName")
    track_artist: Optional[str] = Field(default=None, alias="trackArtist")

    @model_validator(mode="after")
    def _require_track_identifier(self) -> "StylesInput":
        if self.track_number in (None, "") and not self.track_artist:
            raise ValueError("trackNumber or trackArtist is required")
        return self


class TrackInfoInput(_CamelModel):
    track_name: str = Field(min_length=1, alias="trackName")
    style: str = Field(min_length=1)


class ImageInput(_CamelModel):
    prompt: str = Field(min_length=1)
    regenerate: bool = False


class VideoInput(_CamelModel):
    image_url: str = Field(min_length=1, alias="imageUrl")
    prompt: str = Field(min_length=1)
    track_name: Optional[str] = Field(default=None, alias="trackName")
    bpm: Optional[float] = None
    phase: Optional[str] = None
    style: Optional[str] = None


# ==================== Agent outputs ====================


class StyleSuggestions(BaseModel):
    """Structured reply expected from the stylist agent."""

    styles: List[str]


class TrackAnalysis(BaseModel):
    """Structured reply expected from the track analyst agent."""

    bpm: float
    phases: List[str]


# ==================== Outputs ====================


class StylesOutput(_CamelModel):
    styles: List[str] = Field(min_length=5, max_length=5)


class TrackInfoOutput(_CamelModel):
    bpm: int = Field(ge=MIN_BPM, le=MAX_BPM)
    phases: List[Phase]


class ImageOutput(_CamelModel):
    image_url: str = Field(alias="imageUrl")
    enhanced_prompt: str = Field(alias="enhancedPrompt")
    revised_prompt: str = Field(alias="revisedPrompt")
    model_used: str = Field(alias="modelUsed")


class VideoOutput(_CamelModel):
    """Provisional (no ``videoUrl``) or final video job output."""

    task_id: str = Field(min_length=1, alias="taskId")
    status: Literal["processing", "completed"]
    video_prompt: str = Field(alias="videoPrompt")
    video_url: Optional[str] = Field(default=None, alias="videoUrl")
