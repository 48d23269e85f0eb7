"""Tests for the job processor.

Covers the styles happy path, idempotent reprocessing, generator failures
and timeouts, takeover of stale claims, and provisional output for
provider-async video jobs.
"""

import asyncio
import json
from datetime import timedelta

import httpx
import pytest

from dj_visuals.models.generation import RAINBOW_VOMIT, ImageInput
from dj_visuals.models.job import JobStatus, JobType, utcnow
from dj_visuals.services.generators import Generator, StylesGenerator, VideoGenerator
from dj_visuals.services.processor import STALE_GRACE_SECONDS
from dj_visuals.utils.errors import JobNotFoundError


class BrokenImageGenerator(Generator):
    """Raises something other than GeneratorError."""

    job_type = JobType.IMAGE
    input_model = ImageInput

    async def _generate(self, params):
        raise RuntimeError("kaboom")


def runway_submit_client(task_id: str = "rw_123", seen: list = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(json.loads(request.content))
        return httpx.Response(200, json={"id": task_id})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestStylesJob:
    @pytest.mark.asyncio
    async def test_midnight_dreams(self, job_manager, processor_factory, stylist_agent) -> None:
        """A styles job for "Midnight Dreams" completes with five styles ending in the sentinel."""
        processor = processor_factory(styles=StylesGenerator(stylist_agent))
        job_id = await job_manager.create(
            "styles", {"trackNumber": 1, "trackName": "Midnight Dreams", "trackArtist": "Luna"}
        )

        job = await processor.process(job_id)

        assert job.status == JobStatus.COMPLETED
        assert job.output_data["styles"] == [
            "Neon Cyberpunk",
            "Dreamy Pastels",
            "Dark Techno",
            "Retro Synthwave",
            RAINBOW_VOMIT,
        ]
        assert job.completed_at is not None
        assert job.error_message is None

        prompt = stylist_agent.run.await_args.args[0]
        assert "Midnight Dreams" in prompt

    @pytest.mark.asyncio
    async def test_reprocessing_is_a_noop(self, job_manager, processor_factory, stylist_agent) -> None:
        processor = processor_factory(styles=StylesGenerator(stylist_agent))
        job_id = await job_manager.create("styles", {"trackNumber": 2, "trackName": "Afterglow"})

        first = await processor.process(job_id)
        second = await processor.process(job_id)

        assert stylist_agent.run.await_count == 1
        assert second.status == JobStatus.COMPLETED
        assert second.output_data == first.output_data
        assert second.updated_at == first.updated_at

    @pytest.mark.asyncio
    async def test_agent_failure_marks_job_failed(
        self, job_manager, processor_factory, make_failing_agent
    ) -> None:
        processor = processor_factory(
            styles=StylesGenerator(make_failing_agent(ConnectionError("upstream down")))
        )
        job_id = await job_manager.create("styles", {"trackNumber": 3, "trackName": "Static"})

        job = await processor.process(job_id)

        assert job.status == JobStatus.FAILED
        assert "upstream down" in job.error_message
        assert job.completed_at is not None

    @pytest.mark.asyncio
    async def test_missing_api_key_marks_job_failed(self, job_manager, processor_factory) -> None:
        processor = processor_factory()
        job_id = await job_manager.create("styles", {"trackNumber": 4, "trackName": "Static"})

        job = await processor.process(job_id)

        assert job.status == JobStatus.FAILED
        assert job.error_message == "OpenAI API key not configured"


class TestFailureModes:
    @pytest.mark.asyncio
    async def test_timeout_marks_job_failed(self, job_manager, processor_factory, make_agent) -> None:
        agent = make_agent(None)

        async def slow_run(prompt):
            await asyncio.sleep(5)

        agent.run.side_effect = slow_run
        processor = processor_factory(styles=StylesGenerator(agent, timeout=0.05))
        job_id = await job_manager.create("styles", {"trackNumber": 5, "trackName": "Slowburn"})

        job = await processor.process(job_id)

        assert job.status == JobStatus.FAILED
        assert "timed out" in job.error_message

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_job_failed(self, job_manager, processor_factory) -> None:
        processor = processor_factory(image=BrokenImageGenerator())
        job_id = await job_manager.create("image", {"prompt": "strobe"})

        job = await processor.process(job_id)

        assert job.status == JobStatus.FAILED
        assert job.error_message == "Unexpected error: kaboom"

    @pytest.mark.asyncio
    async def test_unknown_job(self, processor_factory) -> None:
        with pytest.raises(JobNotFoundError):
            await processor_factory().process("missing")

    @pytest.mark.asyncio
    async def test_job_claimed_elsewhere_is_left_alone(
        self, job_manager, processor_factory, stylist_agent
    ) -> None:
        processor = processor_factory(styles=StylesGenerator(stylist_agent))
        job_id = await job_manager.create("styles", {"trackNumber": 6, "trackName": "Echo"})
        await job_manager.update(job_id, status=JobStatus.PROCESSING)

        job = await processor.process(job_id)

        assert job.status == JobStatus.PROCESSING
        stylist_agent.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_claim_is_taken_over(
        self, job_manager, processor_factory, stylist_agent, supabase_client
    ) -> None:
        """A job claimed by a worker that died mid-generation is run again."""
        processor = processor_factory(styles=StylesGenerator(stylist_agent, timeout=10))
        job_id = await job_manager.create("styles", {"trackNumber": 6, "trackName": "Echo"})
        await job_manager.update(job_id, status=JobStatus.PROCESSING)
        (row,) = supabase_client.tables["jobs"]
        row["updated_at"] = (utcnow() - timedelta(seconds=10 + STALE_GRACE_SECONDS + 1)).isoformat()

        job = await processor.process(job_id)

        assert job.status == JobStatus.COMPLETED
        assert job.output_data["styles"][-1] == RAINBOW_VOMIT
        stylist_agent.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_claim_within_timeout_is_not_taken_over(
        self, job_manager, processor_factory, stylist_agent, supabase_client
    ) -> None:
        processor = processor_factory(styles=StylesGenerator(stylist_agent, timeout=10))
        job_id = await job_manager.create("styles", {"trackNumber": 6, "trackName": "Echo"})
        await job_manager.update(job_id, status=JobStatus.PROCESSING)
        (row,) = supabase_client.tables["jobs"]
        row["updated_at"] = (utcnow() - timedelta(seconds=10)).isoformat()

        job = await processor.process(job_id)

        assert job.status == JobStatus.PROCESSING
        stylist_agent.run.assert_not_awaited()


class TestVideoJob:
    @pytest.mark.asyncio
    async def test_provisional_output(
        self, job_manager, processor_factory, runway_config, sample_video_input
    ) -> None:
        """A video job stays processing with the task id recorded."""
        submitted: list = []
        video = VideoGenerator(runway_config, http_client=runway_submit_client("rw_123", submitted))
        processor = processor_factory(video=video)
        job_id = await job_manager.create("video", sample_video_input)

        job = await processor.process(job_id)

        assert job.status == JobStatus.PROCESSING
        assert job.completed_at is None
        assert job.output_data == {
            "taskId": "rw_123",
            "status": "processing",
            "videoPrompt": sample_video_input["prompt"],
        }
        assert submitted[0]["promptImage"] == sample_video_input["imageUrl"]
        assert submitted[0]["model"] == runway_config.model

    @pytest.mark.asyncio
    async def test_video_with_task_id_is_not_resubmitted(
        self, job_manager, processor_factory, runway_config, sample_video_input
    ) -> None:
        submitted: list = []
        video = VideoGenerator(runway_config, http_client=runway_submit_client("rw_123", submitted))
        processor = processor_factory(video=video)
        job_id = await job_manager.create("video", sample_video_input)

        await processor.process(job_id)
        job = await processor.process(job_id)

        assert len(submitted) == 1
        assert job.task_id == "rw_123"

    @pytest.mark.asyncio
    async def test_runway_rejection_marks_job_failed(
        self, job_manager, processor_factory, runway_config, sample_video_input
    ) -> None:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(400, text="bad image"))
        )
        processor = processor_factory(video=VideoGenerator(runway_config, http_client=client))
        job_id = await job_manager.create("video", sample_video_input)

        job = await processor.process(job_id)

        assert job.status == JobStatus.FAILED
        assert "Runway API error 400" in job.error_message
