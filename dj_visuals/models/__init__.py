"""Pydantic data models for DJ Visuals."""

from dj_visuals.models.generation import (
    ImageInput,
    ImageOutput,
    StylesInput,
    StylesOutput,
    StyleSuggestions,
    TrackAnalysis,
    TrackInfoInput,
    TrackInfoOutput,
    VideoInput,
    VideoOutput,
)
from dj_visuals.models.job import Job, JobStatus, JobType

__all__ = [
    "Job",
    "JobStatus",
    "JobType",
    "StylesInput",
    "StylesOutput",
    "StyleSuggestions",
    "TrackAnalysis",
    "TrackInfoInput",
    "TrackInfoOutput",
    "ImageInput",
    "ImageOutput",
    "VideoInput",
    "VideoOutput",
]
