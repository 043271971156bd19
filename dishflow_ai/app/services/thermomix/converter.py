"""Two-pass Gemini conversion of a recipe into Thermomix steps."""

import logging
from typing import Optional

from google import genai
from google.genai import errors as genai_errors

from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.core.errors import ConversionError, DishflowError
from dishflow_ai.app.schemas.recipe import Recipe
from dishflow_ai.app.schemas.thermomix import ThermomixConversionResult
from dishflow_ai.app.services.llm_client import generate_typed, json_config
from dishflow_ai.app.services.retry import THERMOMIX_CALL_TIMEOUT_SECONDS, THERMOMIX_RETRY_POLICY
from dishflow_ai.app.services.thermomix.compiler import DEFAULT_SERVINGS
from dishflow_ai.app.services.thermomix.locale import resolve_language_name
from dishflow_ai.app.services.thermomix.prompts import (
    build_conversion_prompt,
    build_review_prompt,
    ingredient_lines,
)
from dishflow_ai.app.services.thermomix.sanitizer import sanitize_conversion

logger = logging.getLogger(__name__)


class ThermomixConverter:
    """Converts a recipe with a conversion pass followed by an expert review pass.

    Both passes use the strict retry policy with a per-call timeout so the
    whole conversion finishes within a fixed deadline. A failed or empty review
    falls back to the first pass. The returned result is always sanitized.
    """

    def __init__(self, client: genai.Client, settings: Optional[Settings] = None):
        self._client = client
        self._settings = settings or get_settings()

    async def convert(self, recipe: Recipe) -> ThermomixConversionResult:
        language = resolve_language_name(recipe.content_language)
        servings = recipe.servings or DEFAULT_SERVINGS

        try:
            first = await self._generate(build_conversion_prompt(recipe, language, servings))
        except DishflowError:
            logger.error("Thermomix pass 1 (conversion) failed for %r", recipe.title)
            raise
        if not first.steps:
            raise ConversionError("thermomix conversion returned empty steps")
        if not first.ingredients:
            first = first.model_copy(
                update={"ingredients": [line[2:] for line in ingredient_lines(recipe)]}
            )
        first = sanitize_conversion(first)

        first_json = first.model_dump_json(indent=2)
        try:
            reviewed = await self._generate(build_review_prompt(recipe, language, servings, first_json))
        except (DishflowError, genai_errors.APIError) as exc:
            logger.warning("Thermomix pass 2 (review) failed for %r, using first pass: %s", recipe.title, exc)
            return first
        if not reviewed.steps:
            logger.warning("Thermomix review returned no steps for %r, using first pass", recipe.title)
            return first

        if not reviewed.ingredients:
            reviewed = reviewed.model_copy(update={"ingredients": first.ingredients})
        return sanitize_conversion(reviewed)

    async def _generate(self, prompt: str) -> ThermomixConversionResult:
        return await generate_typed(
            self._client,
            self._settings.gemini_model,
            prompt,
            ThermomixConversionResult,
            json_config(
                schema=ThermomixConversionResult,
                temperature=self._settings.gemini_thermomix_temperature,
            ),
            policy=THERMOMIX_RETRY_POLICY,
            call_timeout=THERMOMIX_CALL_TIMEOUT_SECONDS,
        )
