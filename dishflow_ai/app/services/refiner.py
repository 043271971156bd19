"""Second-pass recipe refinement with an ingredient-loss guard."""

import logging
from collections import Counter
from typing import List, Optional

from google import genai

from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.core.errors import IrrelevantContentError
from dishflow_ai.app.schemas.extraction import (
    INGREDIENT_CATEGORIES,
    ExtractedIngredient,
    ExtractionEnvelope,
    ExtractionResult,
    NonRecipe,
)
from dishflow_ai.app.services.llm_client import generate_typed, json_config
from dishflow_ai.app.services.prompts import build_refine_prompt
from dishflow_ai.app.services.retry import DEFAULT_RETRY_POLICY

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "other"


def normalize_category(category: str) -> str:
    value = (category or "").strip().lower()
    return value if value in INGREDIENT_CATEGORIES else FALLBACK_CATEGORY


def _name_key(ingredient: ExtractedIngredient) -> str:
    return ingredient.name.strip().lower()


def merge_refined_ingredients(
    original: List[ExtractedIngredient], refined: List[ExtractedIngredient]
) -> List[ExtractedIngredient]:
    """Restore ingredients the refinement dropped and default categories.

    When the refined list is shorter than the original, every original
    ingredient not matched by name (case-insensitive) in the refined list is
    appended. Empty or unknown categories become "other". The result is never
    shorter than ``original``.
    """
    merged = list(refined)
    if len(refined) < len(original):
        # Counted per name so repeated originals ("salt" twice) are restored too.
        available = Counter(_name_key(ingredient) for ingredient in refined)
        restored = 0
        for ingredient in original:
            key = _name_key(ingredient)
            if available[key] > 0:
                available[key] -= 1
                continue
            merged.append(ingredient)
            restored += 1
        logger.warning(
            "Refinement dropped ingredients (%d -> %d); restored %d from the original",
            len(original),
            len(refined),
            restored,
        )
    return [
        ingredient.model_copy(update={"category": normalize_category(ingredient.category)})
        for ingredient in merged
    ]


async def refine_recipe(
    client: genai.Client, raw: ExtractionResult, settings: Optional[Settings] = None
) -> ExtractionResult:
    """Ask Gemini to tidy an extracted recipe without losing ingredients."""
    settings = settings or get_settings()
    recipe_json = raw.model_dump_json(by_alias=True, exclude={"kind"})
    prompt = build_refine_prompt(recipe_json, len(raw.ingredients))

    envelope = await generate_typed(
        client,
        settings.gemini_model,
        prompt,
        ExtractionEnvelope,
        json_config(schema=ExtractionEnvelope),
        policy=DEFAULT_RETRY_POLICY,
    )
    outcome = envelope.to_outcome()
    if isinstance(outcome, NonRecipe):
        raise IrrelevantContentError(outcome.reason)

    ingredients = merge_refined_ingredients(raw.ingredients, outcome.ingredients)
    return outcome.model_copy(update={"ingredients": ingredients})
