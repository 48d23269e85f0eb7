"""FastAPI application for DJ Visuals."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dj_visuals.api.routes import register_exception_handlers, router as jobs_router
from dj_visuals.config import Settings, get_settings
from dj_visuals.services.database import JobStore, create_job_store
from dj_visuals.services.generators import GeneratorRegistry, create_generator_registry
from dj_visuals.services.job_manager import JobManager
from dj_visuals.services.processor import JobProcessor
from dj_visuals.services.task_poller import ExternalTaskPoller
from dj_visuals.services.task_queue import JobQueue

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[JobStore] = None,
    generators: Optional[GeneratorRegistry] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings (defaults to the cached settings)
        store: Job store (defaults to one backed by Supabase)
        generators: Generator registry (defaults to one built from settings)

    Returns:
        Configured FastAPI app; workers run for the lifetime of the app
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level)

        manager = JobManager(store or create_job_store())
        registry = generators or create_generator_registry(settings)
        queue = JobQueue(JobProcessor(manager, registry), worker_count=settings.worker_count)

        app.state.job_manager = manager
        app.state.task_poller = ExternalTaskPoller(manager, registry)
        app.state.job_queue = queue

        await queue.start()
        await queue.requeue_pending(manager)
        queue.start_recovery(manager, settings.recovery_interval_seconds)
        try:
            yield
        finally:
            await queue.stop()

    app = FastAPI(title="DJ Visuals API", lifespan=lifespan)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(jobs_router, prefix="/api")
    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("dj_visuals.main:app", host="0.0.0.0", port=3000, reload=True)
