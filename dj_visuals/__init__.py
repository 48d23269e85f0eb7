"""DJ Visuals: asynchronous jobs for styles, track info, images and videos."""

__version__ = "0.1.0"
