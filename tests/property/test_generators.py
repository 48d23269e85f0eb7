"""Property-based tests for the generator capabilities.

Covers the Rainbow Vomit sentinel, track info normalization, the image
backend fallback chain and video prompt truncation.
"""

import json
import math
from typing import List

import httpx
import pytest
from hypothesis import assume, given, settings, strategies as st

from dj_visuals.config import Settings
from dj_visuals.models.generation import (
    MAX_BPM,
    MIN_BPM,
    PHASES,
    RAINBOW_VOMIT,
    StyleSuggestions,
    TrackAnalysis,
)
from dj_visuals.models.job import JobType
from dj_visuals.services.generators import (
    GeneratorMode,
    ImageGenerator,
    StylesGenerator,
    TrackInfoGenerator,
    VideoGenerator,
    create_generator_registry,
)
from dj_visuals.services.generators.styles import finalize_styles
from dj_visuals.services.generators.track_info import normalize_track_analysis
from dj_visuals.services.generators.video import truncate_prompt
from dj_visuals.utils.errors import GeneratorError


# ==================== Strategies ====================


style_labels = st.text(
    alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz ABCDEFG"), min_size=1, max_size=20
).filter(lambda s: s.strip())


def images_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ==================== Styles ====================


class TestRainbowVomit:
    """*For any* completed styles job, the fifth style is "Rainbow Vomit"."""

    @settings(max_examples=100)
    @given(candidates=st.lists(style_labels, min_size=4, max_size=10))
    def test_sentinel_is_always_fifth(self, candidates: List[str]) -> None:
        distinct = {c.strip().lower() for c in candidates} - {RAINBOW_VOMIT.lower()}
        assume(len(distinct) >= 4)

        styles = finalize_styles(candidates)

        assert len(styles) == 5
        assert styles[4] == RAINBOW_VOMIT
        assert [s.lower() for s in styles].count(RAINBOW_VOMIT.lower()) == 1
        assert len({s.lower() for s in styles}) == 5

    def test_upstream_sentinel_is_dropped(self) -> None:
        styles = finalize_styles(["Glitch", "rainbow vomit", "Noir", "Vaporwave", "Acid", "Chrome"])

        assert styles == ["Glitch", "Noir", "Vaporwave", "Acid", RAINBOW_VOMIT]

    def test_too_few_styles(self) -> None:
        with pytest.raises(GeneratorError):
            finalize_styles(["Glitch", "glitch", " ", "Noir"])

    @pytest.mark.asyncio
    async def test_generator_uses_stylist_output(self, make_agent) -> None:
        agent = make_agent(StyleSuggestions(styles=["Aurora", "Liquid Chrome", "Noir", "Fractal", "Extra"]))

        output = await StylesGenerator(agent).generate(
            {"trackNumber": 7, "trackName": "Northern Lights", "trackArtist": "Solace"}
        )

        assert output == {"styles": ["Aurora", "Liquid Chrome", "Noir", "Fractal", RAINBOW_VOMIT]}

    @pytest.mark.asyncio
    async def test_invalid_input_raises_generator_error(self, stylist_agent) -> None:
        with pytest.raises(GeneratorError):
            await StylesGenerator(stylist_agent).generate({"trackName": "No Number"})


# ==================== Track info ====================


class TestTrackInfo:
    @settings(max_examples=100)
    @given(
        bpm=st.floats(min_value=-1000, max_value=1000, allow_nan=False),
        phases=st.lists(st.sampled_from(PHASES + ["bridge", "Drop", " outro "]), max_size=8),
    )
    def test_normalized_output_in_range(self, bpm: float, phases: List[str]) -> None:
        info = normalize_track_analysis(TrackAnalysis(bpm=bpm, phases=phases))

        assert isinstance(info["bpm"], int)
        assert MIN_BPM <= info["bpm"] <= MAX_BPM
        assert info["phases"]
        assert set(info["phases"]) <= set(PHASES)
        assert len(info["phases"]) == len(set(info["phases"]))

    def test_non_finite_bpm_rejected(self) -> None:
        with pytest.raises(GeneratorError):
            normalize_track_analysis(TrackAnalysis(bpm=math.inf, phases=["drop"]))

    def test_empty_phases_fall_back_to_full_arc(self) -> None:
        assert normalize_track_analysis(TrackAnalysis(bpm=124.6, phases=[])) == {
            "bpm": 125,
            "phases": PHASES,
        }

    @pytest.mark.asyncio
    async def test_generator(self, track_analyst_agent) -> None:
        output = await TrackInfoGenerator(track_analyst_agent).generate(
            {"trackName": "Midnight Dreams", "style": "Neon Cyberpunk"}
        )

        assert output == {"bpm": 128, "phases": ["intro", "buildup", "drop", "outro"]}


# ==================== Image ====================


class TestImageFallback:
    @pytest.mark.asyncio
    async def test_primary_rejection_falls_back(self, openai_config) -> None:
        """Primary backend returns non-2xx; the fallback renders and modelUsed reflects it."""
        requested_models: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            requested_models.append(payload["model"])
            if payload["model"] == "gpt-image-1":
                return httpx.Response(400, json={"error": {"message": "organization not verified"}})
            return httpx.Response(
                200,
                json={"data": [{"url": "https://img.test/fallback.png", "revised_prompt": "revised"}]},
            )

        generator = ImageGenerator(openai_config, http_client=images_client(handler))

        output = await generator.generate({"prompt": "neon skyline"})

        assert requested_models == ["gpt-image-1", "dall-e-3"]
        assert output == {
            "imageUrl": "https://img.test/fallback.png",
            "enhancedPrompt": "neon skyline",
            "revisedPrompt": "revised",
            "modelUsed": "dall-e-3",
        }

    @pytest.mark.asyncio
    async def test_base64_image_becomes_data_url(self, openai_config) -> None:
        generator = ImageGenerator(
            openai_config,
            http_client=images_client(
                lambda request: httpx.Response(200, json={"data": [{"b64_json": "aGVsbG8="}]})
            ),
        )

        output = await generator.generate({"prompt": "neon skyline"})

        assert output["imageUrl"] == "data:image/png;base64,aGVsbG8="
        assert output["modelUsed"] == "gpt-image-1"
        assert output["revisedPrompt"] == "neon skyline"

    @pytest.mark.asyncio
    async def test_all_backends_fail(self, openai_config) -> None:
        generator = ImageGenerator(
            openai_config,
            http_client=images_client(lambda request: httpx.Response(500, text="overloaded")),
        )

        with pytest.raises(GeneratorError, match="All image backends failed"):
            await generator.generate({"prompt": "neon skyline"})

    @pytest.mark.asyncio
    async def test_prompt_enhanced_unless_regenerating(self, openai_config, make_agent) -> None:
        prompts: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            prompts.append(json.loads(request.content)["prompt"])
            return httpx.Response(200, json={"data": [{"url": "https://img.test/a.png"}]})

        agent = make_agent("cinematic neon skyline, volumetric haze")
        generator = ImageGenerator(openai_config, prompt_agent=agent, http_client=images_client(handler))

        first = await generator.generate({"prompt": "neon skyline"})
        second = await generator.generate({"prompt": first["enhancedPrompt"], "regenerate": True})

        assert prompts == ["cinematic neon skyline, volumetric haze"] * 2
        assert agent.run.await_count == 1
        assert second["enhancedPrompt"] == first["enhancedPrompt"]

    @pytest.mark.asyncio
    async def test_enhancement_failure_keeps_prompt(self, openai_config, make_failing_agent) -> None:
        generator = ImageGenerator(
            openai_config,
            prompt_agent=make_failing_agent(RuntimeError("rate limited")),
            http_client=images_client(
                lambda request: httpx.Response(200, json={"data": [{"url": "https://img.test/a.png"}]})
            ),
        )

        output = await generator.generate({"prompt": "neon skyline"})

        assert output["enhancedPrompt"] == "neon skyline"


# ==================== Video ====================


class TestVideoPrompt:
    @settings(max_examples=100)
    @given(prompt=st.text(min_size=1, max_size=1500), max_length=st.integers(min_value=4, max_value=1200))
    def test_truncation_bound(self, prompt: str, max_length: int) -> None:
        result = truncate_prompt(prompt, max_length)

        assert len(result) <= max_length
        if len(prompt) <= max_length:
            assert result == prompt
        else:
            assert result.endswith("...")
            assert result[:-3] == prompt[: max_length - 3]

    def test_counts_code_points(self) -> None:
        prompt = "🎧" * 1001

        result = truncate_prompt(prompt, 1000)

        assert result == "🎧" * 997 + "..."

    @pytest.mark.asyncio
    async def test_motion_prompt_is_truncated_before_submit(self, runway_config, make_agent) -> None:
        submitted = []

        def handler(request: httpx.Request) -> httpx.Response:
            submitted.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "rw_42"})

        generator = VideoGenerator(
            runway_config,
            prompt_agent=make_agent("x" * 1200),
            http_client=images_client(handler),
        )

        output = await generator.generate({"imageUrl": "https://img.test/a.png", "prompt": "drift"})

        assert len(submitted[0]["promptText"]) == runway_config.max_prompt_length
        assert output["videoPrompt"] == submitted[0]["promptText"]
        assert output["taskId"] == "rw_42"
        assert "videoUrl" not in output

    @pytest.mark.asyncio
    async def test_missing_runway_key(self, runway_config) -> None:
        generator = VideoGenerator(runway_config.model_copy(update={"api_key": ""}))

        with pytest.raises(GeneratorError, match="Runway API key not configured"):
            await generator.generate({"imageUrl": "https://img.test/a.png", "prompt": "drift"})


# ==================== Registry ====================


class TestRegistry:
    def test_modes(self, registry_factory) -> None:
        registry = registry_factory()

        assert registry.get("video").mode == GeneratorMode.PROVIDER_ASYNC
        for job_type in (JobType.STYLES, JobType.TRACK_INFO, JobType.IMAGE):
            assert registry.get(job_type).mode == GeneratorMode.SYNCHRONOUS

    def test_unknown_type(self, registry_factory) -> None:
        with pytest.raises(GeneratorError):
            registry_factory().get("audio")

    def test_only_video_has_provider_tasks(self, registry_factory) -> None:
        with pytest.raises(GeneratorError):
            registry_factory().get_provider_async("image")

    def test_built_without_openai_key(self) -> None:
        registry = create_generator_registry(Settings(openai_api_key="", runway_api_key="rw"))

        assert all(registry.get(job_type).job_type == job_type for job_type in JobType)
        assert registry.get("styles").agent is None
        assert registry.get("video").config.api_key == "rw"
