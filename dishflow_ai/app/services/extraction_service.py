"""Recipe extraction from videos, webpages and images via Gemini."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

import httpx
from google import genai
from google.genai import types

from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.core.errors import IrrelevantContentError, MediaProcessingError, MediaProcessingTimeoutError
from dishflow_ai.app.schemas.extraction import (
    ExtractionEnvelope,
    ExtractionRequest,
    ExtractionResult,
    JobStatus,
    NonRecipe,
    SourceKind,
)
from dishflow_ai.app.services import prompts
from dishflow_ai.app.services.llm_client import generate_typed, json_config
from dishflow_ai.app.services.retry import DEFAULT_RETRY_POLICY, with_retry
from dishflow_ai.app.services.url_parsing.html_fetcher import fetch_webpage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[JobStatus, int, str], None]

REMOTE_VIDEO_MIME_TYPE = "video/*"
DEFAULT_LOCAL_VIDEO_MIME_TYPE = "video/mp4"


class ProgressReporter:
    """Forward milestones to an optional callback, enforcing increasing percentages."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self._last = -1

    def __call__(self, status: JobStatus, progress: int, message: str) -> None:
        if progress <= self._last:
            raise ValueError(f"progress must increase: {progress} after {self._last}")
        self._last = progress
        logger.debug("Extraction progress %s %d%%: %s", status.value, progress, message)
        if self._callback is not None:
            self._callback(status, progress, message)


def _state_name(state) -> str:
    if state is None:
        return "STATE_UNSPECIFIED"
    return str(getattr(state, "value", state)).upper()


class RecipeExtractor:
    """Turns a single ExtractionRequest into a validated ExtractionResult.

    The Gemini client and the SSRF-safe HTTP client are long-lived and shared;
    an extractor holds no per-request state and can serve concurrent jobs.
    """

    def __init__(
        self,
        client: genai.Client,
        http_client: httpx.AsyncClient,
        settings: Optional[Settings] = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._http_client = http_client
        self._settings = settings or get_settings()
        self._sleep = sleep
        self._clock = clock

    async def extract(
        self, request: ExtractionRequest, on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionResult:
        kind = request.source_kind
        logger.info("Starting %s extraction (language=%s)", kind.value, request.language)
        if kind in (SourceKind.VIDEO_FILE, SourceKind.VIDEO_URL):
            return await self.extract_from_video(request, on_progress)
        if kind == SourceKind.WEBPAGE:
            return await self.extract_from_webpage(request, on_progress)
        return await self.extract_from_image(request, on_progress)

    async def extract_from_video(
        self, request: ExtractionRequest, on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionResult:
        progress = ProgressReporter(on_progress)
        prompt = prompts.build_video_prompt(request.language, request.detail_level, request.metadata)

        if request.video_url is not None:
            progress(JobStatus.PROCESSING, 30, "Preparing video...")
            video_part = types.Part.from_uri(file_uri=request.video_url, mime_type=REMOTE_VIDEO_MIME_TYPE)
            return await self._generate([video_part, prompt], progress, "Analyzing video content...")

        path = Path(request.video_path)
        if not path.is_file():
            raise FileNotFoundError(f"video file not found: {path}")

        progress(JobStatus.UPLOADING, 20, "Uploading video...")
        uploaded = await self._client.aio.files.upload(file=str(path))
        try:
            progress(JobStatus.PROCESSING, 40, "Processing video...")
            active = await self.wait_for_file_active(uploaded)
            video_part = types.Part.from_uri(
                file_uri=active.uri,
                mime_type=active.mime_type or DEFAULT_LOCAL_VIDEO_MIME_TYPE,
            )
            return await self._generate([video_part, prompt], progress, "Analyzing video content...")
        finally:
            await self._delete_file(uploaded.name)

    async def extract_from_webpage(
        self, request: ExtractionRequest, on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionResult:
        progress = ProgressReporter(on_progress)
        progress(JobStatus.PROCESSING, 10, "Fetching webpage...")
        page = await fetch_webpage(self._http_client, request.webpage_url, self._settings)

        if page.title:
            progress(JobStatus.EXTRACTING, 30, f"Analyzing webpage: {page.title}...")
        else:
            progress(JobStatus.EXTRACTING, 30, "Analyzing webpage content...")
        prompt = prompts.build_webpage_prompt(
            request.language, request.detail_level, request.webpage_url, page.text
        )
        result = await self._generate([prompt], progress)
        if page.image_url:
            result = result.model_copy(update={"thumbnail": page.image_url})
        return result

    async def extract_from_image(
        self, request: ExtractionRequest, on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionResult:
        progress = ProgressReporter(on_progress)
        image_part = types.Part.from_bytes(data=request.image_data, mime_type=request.image_mime_type)
        prompt = prompts.build_image_prompt(request.language, request.detail_level)
        return await self._generate([image_part, prompt], progress, "Analyzing image...")

    async def wait_for_file_active(self, uploaded: types.File) -> types.File:
        """Poll an uploaded file until Gemini has finished processing it.

        Bounded by its own wall-clock deadline regardless of any caller
        timeout, including time spent inside a slow or hanging status call.
        A FAILED state is terminal.
        """
        timeout = self._settings.video_processing_timeout_seconds
        try:
            return await asyncio.wait_for(self._poll_file_state(uploaded), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise MediaProcessingTimeoutError(
                f"video processing did not finish within {timeout:.0f}s"
            ) from exc

    async def _poll_file_state(self, uploaded: types.File) -> types.File:
        interval = self._settings.video_poll_interval_seconds
        timeout = self._settings.video_processing_timeout_seconds
        deadline = self._clock() + timeout
        current = uploaded
        while _state_name(current.state) in {"PROCESSING", "STATE_UNSPECIFIED"}:
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise MediaProcessingTimeoutError(f"video processing did not finish within {timeout:.0f}s")
            await self._sleep(min(interval, remaining))
            name = current.name
            current = await with_retry(lambda: self._client.aio.files.get(name=name), DEFAULT_RETRY_POLICY)

        state = _state_name(current.state)
        if state == "FAILED":
            detail = current.error.message if current.error is not None else "unknown error"
            raise MediaProcessingError(f"video processing failed: {detail}")
        if state != "ACTIVE":
            raise MediaProcessingError(f"unexpected file state: {state}")
        return current

    async def _delete_file(self, name: Optional[str]) -> None:
        if not name:
            return
        try:
            await self._client.aio.files.delete(name=name)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to delete uploaded file %s: %s", name, exc)

    async def _generate(
        self,
        contents: List,
        progress: ProgressReporter,
        analyzing_message: Optional[str] = None,
    ) -> ExtractionResult:
        if analyzing_message:
            progress(JobStatus.EXTRACTING, 60, analyzing_message)
        envelope = await generate_typed(
            self._client,
            self._settings.gemini_model,
            contents,
            ExtractionEnvelope,
            json_config(schema=ExtractionEnvelope),
            policy=DEFAULT_RETRY_POLICY,
        )
        progress(JobStatus.FINALIZING, 90, "Finalizing recipe...")

        outcome = envelope.to_outcome()
        if isinstance(outcome, NonRecipe):
            logger.info("Source rejected as non-recipe: %s", outcome.reason)
            raise IrrelevantContentError(outcome.reason)
        logger.info(
            "Extracted recipe %r with %d ingredients and %d steps",
            outcome.title,
            len(outcome.ingredients),
            len(outcome.steps),
        )
        return outcome
