"""Nutrition, dietary and servings analysis of an extracted recipe."""

import logging
from typing import Optional

from google import genai

from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.core.errors import ResponseParseError
from dishflow_ai.app.schemas.enrichment import EnrichmentResult
from dishflow_ai.app.schemas.extraction import ExtractionResult
from dishflow_ai.app.services.llm_client import generate_typed, json_config
from dishflow_ai.app.services.prompts import build_enrichment_prompt
from dishflow_ai.app.services.retry import DEFAULT_RETRY_POLICY

logger = logging.getLogger(__name__)

# Generation plus parsing is repeated once when the JSON does not decode.
ENRICHMENT_ATTEMPTS = 2


async def enrich_recipe(
    client: genai.Client, recipe: ExtractionResult, settings: Optional[Settings] = None
) -> EnrichmentResult:
    """Estimate per-serving nutrition, dietary flags and meal types.

    A servings estimate is requested only when ``recipe.servings`` is
    unknown; any estimate returned for a recipe with known servings is
    discarded. Confidence filtering is left to :meth:`EnrichmentResult.confident`.
    """
    settings = settings or get_settings()
    prompt = build_enrichment_prompt(recipe)
    config = json_config(schema=EnrichmentResult)

    for attempt in range(1, ENRICHMENT_ATTEMPTS + 1):
        try:
            result = await generate_typed(
                client,
                settings.gemini_model,
                prompt,
                EnrichmentResult,
                config,
                policy=DEFAULT_RETRY_POLICY,
            )
            break
        except ResponseParseError as exc:
            if attempt == ENRICHMENT_ATTEMPTS:
                raise
            logger.warning(
                "Enrichment response did not parse on attempt %d/%d: %s",
                attempt,
                ENRICHMENT_ATTEMPTS,
                exc.message,
            )

    if recipe.servings and result.servings_estimate is not None:
        result = result.model_copy(update={"servings_estimate": None})
    logger.info("Enriched recipe %r", recipe.title)
    return result


def apply_servings_estimate(recipe: ExtractionResult, enrichment: EnrichmentResult) -> ExtractionResult:
    """Fill unknown servings from a confident estimate; known servings win."""
    if recipe.servings:
        return recipe
    estimate = enrichment.confident().servings_estimate
    if estimate is None:
        return recipe
    return recipe.model_copy(update={"servings": estimate.value})
