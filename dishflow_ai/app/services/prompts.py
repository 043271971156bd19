"""Prompt templates for recipe extraction, refinement and enrichment."""

from dishflow_ai.app.schemas.enrichment import ALLERGENS, MEAL_TYPES, NUTRITION_TAGS
from dishflow_ai.app.schemas.extraction import INGREDIENT_CATEGORIES, ExtractedIngredient, ExtractionResult
from dishflow_ai.app.services.url_parsing.parsing_utils import sanitize_prompt_string

CATEGORY_LIST = ", ".join(INGREDIENT_CATEGORIES)

RESULT_SHAPE = """{
  "title": "Recipe Title",
  "description": "Brief description",
  "servings": 4,
  "prepTime": 15,
  "cookTime": 30,
  "difficulty": "easy",
  "cuisine": "Italian",
  "ingredients": [
    {"name": "Flour", "quantity": "2", "unit": "cups", "category": "pantry", "section": "Main", "isOptional": false, "notes": "", "videoTimestamp": 0}
  ],
  "steps": [
    {"stepNumber": 1, "instruction": "Do this", "durationSeconds": 60, "technique": "Chopping", "temperature": "", "videoTimestampStart": 0, "videoTimestampEnd": 60}
  ],
  "tags": ["pasta", "dinner"]
}"""

NON_RECIPE_INSTRUCTION = """If this is clearly NOT a cooking recipe or food preparation content (for example a dance video, a news article, a vlog without food, gaming, a product page),
return exactly {{"non_recipe": true, "reason": "Content appears to be <short description>"}}.
Do not invent a recipe when there is none in the {source}."""

GROUPING_INSTRUCTION = """If the recipe has distinct parts (for example "For the dough", "For the sauce", "Toppings"), put the part name in each ingredient's "section" field.
If there are no distinct parts, use "Main" as the section."""


def _common_footer() -> str:
    return (
        f"Ingredient categories must be one of: {CATEGORY_LIST}.\n"
        'Difficulty must be one of "easy", "medium", "hard".\n\n'
        f"If it IS a recipe, return a JSON object with this structure:\n{RESULT_SHAPE}\n\n"
        "Return ONLY the JSON, no markdown or explanations."
    )


def build_video_prompt(language: str, detail_level: str, metadata: str) -> str:
    return (
        "You are an expert chef and food analyst. Analyze this video and extract the recipe.\n\n"
        f"Target language: {language}\n"
        f"Detail level: {detail_level} (if 'detailed', give very precise steps and timestamps).\n\n"
        f"<video_context>\n{sanitize_prompt_string(metadata)}\n</video_context>\n\n"
        "Use the context above to identify ingredients and steps that are spoken quickly or only listed in the caption.\n\n"
        f"{GROUPING_INSTRUCTION}\n\n"
        f"{NON_RECIPE_INSTRUCTION.format(source='video')}\n\n"
        f"{_common_footer()}"
    )


def build_webpage_prompt(language: str, detail_level: str, url: str, content: str) -> str:
    return (
        "You are an expert chef and recipe extraction specialist. Extract the recipe from this webpage content.\n\n"
        f"Target language: {language}\n"
        f"Detail level: {detail_level}\n"
        f"Webpage URL: {sanitize_prompt_string(url)}\n\n"
        f"<webpage_content>\n{content}\n</webpage_content>\n\n"
        "Extract ALL ingredients with quantities and units and ALL steps in order. "
        "If the page holds several recipes, extract the main one.\n\n"
        f"{NON_RECIPE_INSTRUCTION.format(source='page')}\n\n"
        f"{_common_footer()}"
    )


def build_image_prompt(language: str, detail_level: str) -> str:
    return (
        "You are an expert chef and OCR specialist. Extract the recipe shown in this image "
        "(a cookbook page, a handwritten card, a screenshot or a photo of a dish with its recipe).\n\n"
        f"Target language: {language}\n"
        f"Detail level: {detail_level}\n\n"
        "Read every ingredient line and every step exactly. Estimate times only when they are stated.\n\n"
        f"{GROUPING_INSTRUCTION}\n\n"
        f"{NON_RECIPE_INSTRUCTION.format(source='image')}\n\n"
        f"{_common_footer()}"
    )


def build_refine_prompt(recipe_json: str, ingredient_count: int) -> str:
    return f"""You are a professional chef reviewing a recipe extraction. Refine and improve this recipe.

Original recipe (JSON):
{recipe_json}

Refinement tasks:
1. Standardize naming: use consistent ingredient names, keep them specific ("red onion" stays "red onion"), use the singular for countable items.
2. Fix quantities: every ingredient needs a measurement; estimate a reasonable one if missing; use standard units.
3. Categories: every ingredient MUST have a category from: {CATEGORY_LIST}. Use "other" only when truly uncertain.
4. Steps: keep them clear and sequential. If steps are extremely brief, expand them with visual cues, specific techniques and implicit intermediate steps (preheating, greasing). Renumber steps 1, 2, 3...

Rules you must never break:
- NEVER remove or merge ingredients. Keep ALL ingredients from the original, even similar ones; add notes to tell them apart.
- NEVER leave a category empty.
- Preserve timestamps, techniques and other metadata exactly.
- Return the refined recipe in the exact same JSON structure.

Original ingredient count: {ingredient_count} - your output MUST have at least {ingredient_count} ingredients.

Return ONLY the JSON, no explanations."""


ENRICHMENT_SHAPE = """{{
  "nutrition": {{
    "perServing": {{"calories": 0, "protein": 0, "carbs": 0, "fat": 0, "fiber": 0, "sugar": 0, "sodium": 0}},
    "tags": [],
    "confidence": 0.0
  }},
  "dietaryInfo": {{
    "isVegetarian": false,
    "isVegan": false,
    "isGlutenFree": false,
    "isDairyFree": false,
    "isNutFree": false,
    "isKeto": false,
    "isHalal": null,
    "isKosher": null,
    "allergens": [],
    "mealTypes": [],
    "confidence": 0.0
  }}{servings_shape}
}}"""

SERVINGS_SHAPE = """,
  "servingsEstimate": {"value": 4, "confidence": 0.0, "reasoning": "brief explanation"}"""


def format_ingredient_line(ingredient: ExtractedIngredient) -> str:
    """Render an ingredient as "quantity unit name (notes)"."""
    line = " ".join(part for part in (ingredient.quantity, ingredient.unit, ingredient.name) if part)
    if ingredient.notes:
        line += f" ({ingredient.notes})"
    return line


def build_enrichment_prompt(recipe: ExtractionResult) -> str:
    needs_servings = not recipe.servings
    lines = [f"Title: {recipe.title}", ""]
    lines.append(f"Servings: {recipe.servings}" if recipe.servings else "Servings: unknown")
    lines.append("")
    lines.append("Ingredients:")
    lines.extend(f"- {format_ingredient_line(ingredient)}" for ingredient in recipe.ingredients)
    lines.append("")
    lines.append("Steps:")
    lines.extend(f"{index}. {step.instruction}" for index, step in enumerate(recipe.steps, start=1))
    lines.append("")
    lines.append("Additional context:")
    if recipe.prep_time:
        lines.append(f"- Prep time: {recipe.prep_time} minutes")
    if recipe.cook_time:
        lines.append(f"- Cook time: {recipe.cook_time} minutes")
    if recipe.cuisine:
        lines.append(f"- Cuisine: {recipe.cuisine}")
    recipe_text = "\n".join(lines)

    guidelines = [
        "- Estimate nutrition per serving based on typical ingredient amounts. Protein, carbs, fat, fiber and sugar are grams; sodium is mg.",
        f"- Nutrition tags come from: {', '.join(NUTRITION_TAGS)}.",
        "- For dietary flags, analyze all ingredients carefully.",
        "- Use null for isHalal/isKosher unless clearly determinable (for example pork is not halal).",
        f"- Allergens come from: {', '.join(ALLERGENS)}.",
        f"- Meal types come from: {', '.join(MEAL_TYPES)}. Infer them from the recipe (eggs and bacon suggest breakfast, sweet or chocolate suggests dessert).",
    ]
    if needs_servings:
        guidelines.append(
            "- Servings is unknown: estimate it from ingredient quantities "
            "(1 lb meat ~ 4 servings, 2 chicken breasts ~ 2 servings, 1 cup dry pasta ~ 4 servings cooked)."
        )
    guidelines.append("- Set each confidence between 0.0 and 1.0 based on how certain you are of your estimates.")

    shape = ENRICHMENT_SHAPE.format(servings_shape=SERVINGS_SHAPE if needs_servings else "")
    return (
        "Analyze this recipe and provide nutrition estimates and dietary classifications.\n\n"
        f"Recipe:\n---\n{recipe_text}\n---\n\n"
        f"Respond with JSON only, no explanation, in this structure:\n{shape}\n\n"
        "Guidelines:\n" + "\n".join(guidelines)
    )
