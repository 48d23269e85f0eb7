"""HTTP API for DJ Visuals."""

from dj_visuals.api.routes import router

__all__ = ["router"]
