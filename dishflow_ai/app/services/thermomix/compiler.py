"""Compile sanitized Thermomix steps into Cookidoo recipe items."""

import logging
from typing import List, Optional

from dishflow_ai.app.schemas.cookidoo import (
    AnnotationData,
    AnnotationPosition,
    AnnotationTemperature,
    RecipeItem,
    RecipeYield,
    StepAnnotation,
    ThermomixRecipe,
)
from dishflow_ai.app.schemas.recipe import Recipe
from dishflow_ai.app.schemas.thermomix import DEFAULT_REQUIRED_MODELS, ThermomixConversionResult, ThermomixStep
from dishflow_ai.app.services.thermomix.notation import (
    build_mode_notation,
    build_parameter_notation,
    char_index,
)

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_LANGUAGE = "fr"
DEFAULT_SERVINGS = 4
WARM_UP_DEFAULT_TEMP = "65"
RICE_COOKER_TEMP = "100"
BLEND_SPEED = "6"
WARM_UP_SPEED = "soft"


def mode_annotation_data(mode: str, time_seconds: int, temp_celsius: str) -> AnnotationData:
    """Fixed internal parameters of each automode; only time varies."""
    data = AnnotationData(time=time_seconds if time_seconds > 0 else None)
    if mode == "blend":
        data.speed = BLEND_SPEED
    elif mode == "warm_up":
        data.speed = WARM_UP_SPEED
        data.temperature = AnnotationTemperature(value=temp_celsius or WARM_UP_DEFAULT_TEMP)
    elif mode == "rice_cooker":
        data.temperature = AnnotationTemperature(value=RICE_COOKER_TEMP)
    return data


def ingredient_annotations(text: str, refs: List[str]) -> List[StepAnnotation]:
    annotations: List[StepAnnotation] = []
    for ref in refs:
        offset = char_index(text, ref)
        if offset is None:
            logger.debug("Ingredient ref %r not found in step text, skipping", ref)
            continue
        annotations.append(
            StepAnnotation(
                type="INGREDIENT",
                data=AnnotationData(description=ref),
                position=AnnotationPosition(offset=offset, length=len(ref)),
            )
        )
    return annotations


def compile_step(step: ThermomixStep, lang: Optional[str]) -> RecipeItem:
    """Build the STEP item for one instruction.

    An automode yields a single MODE annotation and any speed is ignored.
    Otherwise a TTS annotation is added when speed or temperature is set.
    The notation is appended to the text after a space and the annotation
    points at it.
    """
    text = step.text
    annotations = ingredient_annotations(text, step.ingredient_refs)

    if step.mode:
        notation = build_mode_notation(step.mode, step.time_seconds, step.temp_celsius, lang)
        if notation:
            annotations.append(
                StepAnnotation(
                    type="MODE",
                    name=step.mode,
                    data=mode_annotation_data(step.mode, step.time_seconds, step.temp_celsius),
                    position=AnnotationPosition(offset=len(text) + 1, length=len(notation)),
                )
            )
            text = f"{text} {notation}"
    elif step.speed or step.temp_celsius:
        notation = build_parameter_notation(step.speed, step.time_seconds, step.temp_celsius, lang)
        data = AnnotationData(
            speed=step.speed or None,
            time=step.time_seconds if step.time_seconds > 0 else None,
        )
        if step.temp_celsius:
            data.temperature = AnnotationTemperature(value=step.temp_celsius)
        annotations.append(
            StepAnnotation(
                type="TTS",
                data=data,
                position=AnnotationPosition(offset=len(text) + 1, length=len(notation)),
            )
        )
        text = f"{text} {notation}"

    return RecipeItem(type="STEP", text=text, annotations=annotations)


def device_language(
    recipe: Recipe, override: Optional[str] = None, default: str = DEFAULT_DEVICE_LANGUAGE
) -> str:
    lang = (override or recipe.content_language or "").strip()
    if not lang or lang.lower() == "auto":
        return default
    return lang


def build_thermomix_recipe(
    recipe: Recipe,
    conversion: ThermomixConversionResult,
    language: Optional[str] = None,
    default_language: str = DEFAULT_DEVICE_LANGUAGE,
) -> ThermomixRecipe:
    """Assemble the Cookidoo payload from a recipe and its sanitized conversion."""
    lang = device_language(recipe, language, default_language)
    return ThermomixRecipe(
        name=recipe.title,
        ingredients=[RecipeItem(type="INGREDIENT", text=line) for line in conversion.ingredients],
        instructions=[compile_step(step, lang) for step in conversion.steps],
        tools=conversion.required_models or list(DEFAULT_REQUIRED_MODELS),
        recipe_yield=RecipeYield(value=recipe.servings or DEFAULT_SERVINGS),
        total_time=recipe.total_time_minutes * 60,
        prep_time=(recipe.prep_time or 0) * 60,
        language=lang,
        thumbnail_url=recipe.thumbnail_url,
    )
