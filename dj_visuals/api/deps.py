"""FastAPI dependencies for the DJ Visuals API."""

from fastapi import Request

from dj_visuals.services.job_manager import JobManager
from dj_visuals.services.task_poller import ExternalTaskPoller
from dj_visuals.services.task_queue import JobQueue


def get_job_manager_dep(request: Request) -> JobManager:
    """Dependency for the job manager built at startup."""
    return request.app.state.job_manager


def get_task_poller_dep(request: Request) -> ExternalTaskPoller:
    return request.app.state.task_poller


def get_job_queue_dep(request: Request) -> JobQueue:
    return request.app.state.job_queue
