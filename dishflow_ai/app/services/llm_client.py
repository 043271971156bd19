import logging
from typing import Any, Optional, Type, TypeVar

from google import genai
from google.genai import types

from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.services.llm_response import parse_model_json
from dishflow_ai.app.services.retry import DEFAULT_RETRY_POLICY, RetryPolicy, with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_genai_client(settings: Optional[Settings] = None) -> genai.Client:
    settings = settings or get_settings()
    if not settings.gemini_api_key:
        raise ValueError("GEMINI_API_KEY must be set to call Gemini")
    return genai.Client(api_key=settings.gemini_api_key)


def json_config(
    schema: Optional[Any] = None,
    temperature: Optional[float] = None,
    system_instruction: Optional[str] = None,
) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=schema,
        temperature=temperature,
        system_instruction=system_instruction,
    )


async def generate_json(
    client: genai.Client,
    model: str,
    contents: Any,
    config: types.GenerateContentConfig,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    call_timeout: Optional[float] = None,
) -> types.GenerateContentResponse:
    """Run one JSON generation call under ``policy``."""

    async def _call() -> types.GenerateContentResponse:
        return await client.aio.models.generate_content(model=model, contents=contents, config=config)

    return await with_retry(_call, policy, call_timeout=call_timeout)


async def generate_typed(
    client: genai.Client,
    model: str,
    contents: Any,
    target: Type[T],
    config: types.GenerateContentConfig,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    call_timeout: Optional[float] = None,
) -> T:
    """Generate JSON and decode it into ``target``.

    Transient failures are retried; blocked, truncated and unparseable
    responses are not.
    """
    response = await generate_json(
        client, model, contents, config, policy=policy, call_timeout=call_timeout
    )
    return parse_model_json(response, target)
