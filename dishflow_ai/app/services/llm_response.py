"""Validation and typed decoding of Gemini responses."""

import logging
import re
from typing import Any, Optional, Type, TypeVar

from google.genai import types
from pydantic import TypeAdapter, ValidationError

from dishflow_ai.app.core.errors import (
    ContentBlockedError,
    EmptyResponseError,
    ResponseParseError,
    TruncatedResponseError,
    UnexpectedFinishReasonError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

EXCERPT_MAX_CHARS = 500

_NORMAL_FINISH = {"STOP", "FINISH_REASON_UNSPECIFIED"}
_SAFETY_FINISH = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII", "IMAGE_SAFETY"}
_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value)).upper()


def validate_response(response: types.GenerateContentResponse) -> str:
    """Check the finish signal and return the text of the first candidate.

    Raises a distinct error for each abnormal completion so callers never
    treat a blocked or truncated response as a usable one.
    """
    candidates = response.candidates or []
    if not candidates:
        feedback = response.prompt_feedback
        block_reason = _enum_name(feedback.block_reason) if feedback else None
        if block_reason and block_reason != "BLOCKED_REASON_UNSPECIFIED":
            raise ContentBlockedError(f"content blocked by safety filters: prompt {block_reason}")
        raise EmptyResponseError("empty response from model")

    candidate = candidates[0]
    finish_reason = _enum_name(candidate.finish_reason)
    if finish_reason in _SAFETY_FINISH:
        raise ContentBlockedError("content blocked by safety filters")
    if finish_reason == "RECITATION":
        raise ContentBlockedError("content blocked: recitation policy violation")
    if finish_reason == "MAX_TOKENS":
        raise TruncatedResponseError(
            "response truncated: output exceeded max tokens (recipe may be incomplete)"
        )
    if finish_reason is not None and finish_reason not in _NORMAL_FINISH:
        raise UnexpectedFinishReasonError(finish_reason)

    if candidate.content is None or not candidate.content.parts:
        raise EmptyResponseError("model response has no content")
    for part in candidate.content.parts:
        if part.text:
            return part.text
    raise EmptyResponseError("model response has no text part")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapped around a JSON payload."""
    match = _FENCED_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def excerpt(text: str, limit: int = EXCERPT_MAX_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit]


def parse_json_text(text: str, target: Type[T]) -> T:
    cleaned = strip_code_fences(text)
    try:
        return TypeAdapter(target).validate_json(cleaned)
    except ValidationError as exc:
        snippet = excerpt(cleaned)
        logger.warning("Model JSON did not match %s: %s", getattr(target, "__name__", target), snippet)
        raise ResponseParseError(
            f"failed to parse model JSON: {exc.error_count()} validation error(s); raw: {snippet}",
            excerpt=snippet,
        ) from exc


def parse_model_json(response: types.GenerateContentResponse, target: Type[T]) -> T:
    """Validate ``response`` and decode its first text part into ``target``."""
    text = validate_response(response)
    return parse_json_text(text, target)
