import json

import pytest

from dishflow_ai.app.core.errors import IrrelevantContentError
from dishflow_ai.app.schemas.extraction import ExtractedIngredient, ExtractionResult
from dishflow_ai.app.services.refiner import merge_refined_ingredients, normalize_category, refine_recipe
from fakes import FakeGenaiClient, make_response


def ingredient(name, category="pantry"):
    return ExtractedIngredient(name=name, category=category)


def test_normalize_category():
    assert normalize_category("Dairy") == "dairy"
    assert normalize_category("") == "other"
    assert normalize_category("meat") == "other"


def test_dropped_ingredients_are_restored():
    original = [ingredient("Flour"), ingredient("Salt", "spices"), ingredient("Butter", "dairy")]
    refined = [ingredient("flour"), ingredient("Butter", "dairy")]

    merged = merge_refined_ingredients(original, refined)

    assert [i.name for i in merged] == ["flour", "Butter", "Salt"]
    assert merged[2].category == "spices"


def test_repeated_names_are_counted():
    original = [ingredient("Salt", "spices"), ingredient("Salt", "spices"), ingredient("Pepper", "spices")]
    refined = [ingredient("Salt", "spices"), ingredient("Pepper", "spices")]

    merged = merge_refined_ingredients(original, refined)

    assert len(merged) == 3
    assert [i.name for i in merged].count("Salt") == 2


def test_longer_refinement_kept_and_categories_defaulted():
    original = [ingredient("Rice")]
    refined = [ingredient("Rice", "grains"), ingredient("Water", "")]

    merged = merge_refined_ingredients(original, refined)

    assert [i.name for i in merged] == ["Rice", "Water"]
    assert [i.category for i in merged] == ["other", "other"]


@pytest.mark.asyncio
async def test_refine_recipe_never_loses_ingredients(settings):
    raw = ExtractionResult(
        title="Omelette",
        ingredients=[ingredient("Eggs", "proteins"), ingredient("Chives", "produce"), ingredient("Butter", "dairy")],
        steps=[{"instruction": "Beat the eggs"}],
    )
    refined = {
        "title": "Herb Omelette",
        "ingredients": [{"name": "Eggs", "quantity": "3", "category": "proteins"}],
        "steps": [{"stepNumber": 1, "instruction": "Beat the eggs with a fork."}],
    }
    genai_client = FakeGenaiClient([make_response(json.dumps(refined))])

    result = await refine_recipe(genai_client, raw, settings)

    assert result.title == "Herb Omelette"
    assert len(result.ingredients) >= len(raw.ingredients)
    assert {i.name for i in result.ingredients} == {"Eggs", "Chives", "Butter"}
    prompt = genai_client.models.calls[0]["contents"]
    assert "Original ingredient count: 3" in prompt
    assert '"kind"' not in prompt


@pytest.mark.asyncio
async def test_refine_recipe_rejects_non_recipe(settings):
    raw = ExtractionResult(title="Thing", ingredients=[ingredient("Paint")])
    verdict = make_response(json.dumps({"non_recipe": True, "reason": "Content appears to be a craft project"}))

    with pytest.raises(IrrelevantContentError):
        await refine_recipe(FakeGenaiClient([verdict]), raw, settings)
