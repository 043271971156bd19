import asyncio
import json

import httpx
import pytest

from dishflow_ai.app.core.config import Settings
from dishflow_ai.app.core.errors import IrrelevantContentError, MediaProcessingError, MediaProcessingTimeoutError
from dishflow_ai.app.schemas.extraction import ExtractionRequest, JobStatus
from dishflow_ai.app.services.extraction_service import ProgressReporter, RecipeExtractor
from dishflow_ai.app.services.url_parsing.html_fetcher import create_safe_http_client
from fakes import FakeFiles, FakeGenaiClient, make_response

PANCAKES = {
    "title": "Pancakes",
    "description": "Fluffy breakfast pancakes",
    "servings": 4,
    "prepTime": 10,
    "cookTime": 15,
    "difficulty": "easy",
    "cuisine": "American",
    "ingredients": [
        {"name": "Flour", "quantity": "200", "unit": "g", "category": "pantry", "section": "Main"},
        {"name": "Milk", "quantity": "300", "unit": "ml", "category": "dairy", "section": "Main"},
    ],
    "steps": [
        {"stepNumber": 1, "instruction": "Whisk everything together."},
        {"stepNumber": 2, "instruction": "Cook in a hot pan.", "durationSeconds": 120},
    ],
    "tags": ["breakfast"],
    "thumbnail": "https://model.example.com/guess.jpg",
}

PAGE = """
<html><head>
  <title>Pancakes</title>
  <meta property="og:image" content="https://cdn.example.com/pancakes.jpg" />
</head><body>
  <h1>Best Pancakes</h1>
  <article><p>Whisk flour, milk and eggs. Rest the batter for ten minutes, then cook ladlefuls in a hot buttered pan.</p></article>
</body></html>
"""


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, delay):
        self.sleeps.append(delay)
        self.now += delay


class ProgressLog:
    def __init__(self):
        self.events = []

    def __call__(self, status, progress, message):
        self.events.append((status, progress, message))

    @property
    def percentages(self):
        return [progress for _, progress, _ in self.events]


def recipe_response(data=None):
    return make_response(json.dumps(data or PANCAKES))


def page_http_client(settings, html=PAGE):
    def handler(request):
        return httpx.Response(200, headers={"content-type": "text/html"}, text=html)

    async def resolver(host, port):
        return ["93.184.216.34"]

    return create_safe_http_client(settings, transport=httpx.MockTransport(handler), resolver=resolver)


def make_extractor(genai_client, settings, http_client=None, clock=None):
    clock = clock or FakeClock()
    return RecipeExtractor(
        genai_client,
        http_client or page_http_client(settings),
        settings,
        sleep=clock.sleep,
        clock=clock,
    )


def test_progress_reporter_requires_increasing_values():
    log = ProgressLog()
    progress = ProgressReporter(log)
    progress(JobStatus.PROCESSING, 10, "start")
    progress(JobStatus.EXTRACTING, 30, "next")
    with pytest.raises(ValueError):
        progress(JobStatus.FINALIZING, 30, "again")
    assert log.percentages == [10, 30]


def test_job_statuses_match_emitted_milestones():
    assert [status.value for status in JobStatus] == ["uploading", "processing", "extracting", "finalizing"]


@pytest.mark.asyncio
async def test_webpage_extraction_uses_page_image(settings):
    genai_client = FakeGenaiClient([recipe_response()])
    log = ProgressLog()
    extractor = make_extractor(genai_client, settings)

    result = await extractor.extract(ExtractionRequest(webpage_url="https://recipes.example.com/pancakes"), log)

    assert result.title == "Pancakes"
    assert result.thumbnail == "https://cdn.example.com/pancakes.jpg"
    assert [(status, progress) for status, progress, _ in log.events] == [
        (JobStatus.PROCESSING, 10),
        (JobStatus.EXTRACTING, 30),
        (JobStatus.FINALIZING, 90),
    ]
    assert log.events[1][2] == "Analyzing webpage: Best Pancakes..."

    call = genai_client.models.calls[0]
    assert call["model"] == "gemini-test"
    prompt = call["contents"][0]
    assert "<webpage_content>" in prompt
    assert "ladlefuls" in prompt
    assert call["config"].response_mime_type == "application/json"


@pytest.mark.asyncio
async def test_non_recipe_raises_irrelevant_content(settings):
    verdict = make_response(json.dumps({"non_recipe": True, "reason": "Content appears to be a dance video"}))
    extractor = make_extractor(FakeGenaiClient([verdict]), settings)

    with pytest.raises(IrrelevantContentError) as excinfo:
        await extractor.extract(ExtractionRequest(video_url="https://cdn.example.com/dance.mp4"))

    assert excinfo.value.reason == "Content appears to be a dance video"


@pytest.mark.asyncio
async def test_remote_video_passed_by_reference(settings):
    genai_client = FakeGenaiClient([recipe_response()])
    log = ProgressLog()
    extractor = make_extractor(genai_client, settings)

    request = ExtractionRequest(video_url="https://cdn.example.com/pancakes.mp4", metadata="Caption: easy pancakes\n#breakfast")
    result = await extractor.extract(request, log)

    assert result.thumbnail == "https://model.example.com/guess.jpg"
    assert log.percentages == [30, 60, 90]
    assert genai_client.files.uploaded == []
    video_part, prompt = genai_client.models.calls[0]["contents"]
    assert video_part.file_data.file_uri == "https://cdn.example.com/pancakes.mp4"
    assert "<video_context>\nCaption: easy pancakes #breakfast\n</video_context>" in prompt


@pytest.mark.asyncio
async def test_local_video_polls_until_active_and_deletes(settings, tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    files = FakeFiles(states=["PROCESSING", "PROCESSING", "ACTIVE"])
    genai_client = FakeGenaiClient([recipe_response()], files=files)
    clock = FakeClock()
    log = ProgressLog()
    extractor = make_extractor(genai_client, settings, clock=clock)

    result = await extractor.extract(ExtractionRequest(video_path=video), log)

    assert result.title == "Pancakes"
    assert files.uploaded == [str(video)]
    assert files.get_calls == 2
    assert clock.sleeps == [2.0, 2.0]
    assert files.deleted == ["files/abc"]
    assert [(status, progress) for status, progress, _ in log.events] == [
        (JobStatus.UPLOADING, 20),
        (JobStatus.PROCESSING, 40),
        (JobStatus.EXTRACTING, 60),
        (JobStatus.FINALIZING, 90),
    ]
    video_part = genai_client.models.calls[0]["contents"][0]
    assert video_part.file_data.file_uri == files.uri


@pytest.mark.asyncio
async def test_failed_processing_still_deletes_upload(settings, tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"data")
    files = FakeFiles(states=["PROCESSING", "FAILED"])
    genai_client = FakeGenaiClient([], files=files)
    extractor = make_extractor(genai_client, settings)

    with pytest.raises(MediaProcessingError) as excinfo:
        await extractor.extract(ExtractionRequest(video_path=video))

    assert "transcoding failed" in excinfo.value.message
    assert files.deleted == ["files/abc"]
    assert genai_client.models.calls == []


@pytest.mark.asyncio
async def test_processing_timeout(tmp_path):
    settings = Settings(
        _env_file=None,
        GEMINI_API_KEY="test-key",
        VIDEO_POLL_INTERVAL_SECONDS=2.0,
        VIDEO_PROCESSING_TIMEOUT_SECONDS=5.0,
    )
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"data")
    files = FakeFiles(states=["PROCESSING"] * 10)
    clock = FakeClock()
    extractor = make_extractor(FakeGenaiClient([], files=files), settings, clock=clock)

    with pytest.raises(MediaProcessingTimeoutError):
        await extractor.extract(ExtractionRequest(video_path=video))

    assert clock.sleeps == [2.0, 2.0, 1.0]
    assert files.deleted == ["files/abc"]


class HangingFiles(FakeFiles):
    async def get(self, *, name, config=None):
        self.get_calls += 1
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_processing_timeout_covers_hanging_status_call(tmp_path):
    settings = Settings(
        _env_file=None,
        GEMINI_API_KEY="test-key",
        VIDEO_POLL_INTERVAL_SECONDS=0.01,
        VIDEO_PROCESSING_TIMEOUT_SECONDS=0.2,
    )
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"data")
    files = HangingFiles(states=["PROCESSING"])
    extractor = make_extractor(FakeGenaiClient([], files=files), settings)

    with pytest.raises(MediaProcessingTimeoutError):
        await asyncio.wait_for(extractor.extract(ExtractionRequest(video_path=video)), timeout=5)

    assert files.get_calls == 1
    assert files.deleted == ["files/abc"]


@pytest.mark.asyncio
async def test_missing_local_video(settings, tmp_path):
    genai_client = FakeGenaiClient([])
    extractor = make_extractor(genai_client, settings)

    with pytest.raises(FileNotFoundError):
        await extractor.extract(ExtractionRequest(video_path=tmp_path / "missing.mp4"))

    assert genai_client.files.uploaded == []


@pytest.mark.asyncio
async def test_image_extraction_sends_inline_bytes(settings):
    genai_client = FakeGenaiClient([recipe_response()])
    log = ProgressLog()
    extractor = make_extractor(genai_client, settings)

    await extractor.extract(ExtractionRequest(image_data=b"\xff\xd8\xff", image_mime_type="image/jpeg"), log)

    assert log.percentages == [60, 90]
    image_part = genai_client.models.calls[0]["contents"][0]
    assert image_part.inline_data.data == b"\xff\xd8\xff"
    assert image_part.inline_data.mime_type == "image/jpeg"
