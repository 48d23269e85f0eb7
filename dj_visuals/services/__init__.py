"""Services for DJ Visuals."""

from dj_visuals.services.database import DatabaseError, JobStore, create_job_store
from dj_visuals.services.job_manager import JobManager
from dj_visuals.services.processor import JobProcessor
from dj_visuals.services.task_poller import ExternalTaskPoller
from dj_visuals.services.task_queue import JobQueue

__all__ = [
    "DatabaseError",
    "JobStore",
    "create_job_store",
    "JobManager",
    "JobProcessor",
    "ExternalTaskPoller",
    "JobQueue",
]
