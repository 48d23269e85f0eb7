"""Client for the DJ Visuals job API."""

from dj_visuals.client.jobs_client import JobsClient
from dj_visuals.client.polling import JobPoller, PollBackend

__all__ = ["JobsClient", "JobPoller", "PollBackend"]
