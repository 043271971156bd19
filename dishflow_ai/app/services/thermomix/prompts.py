"""Prompts for the two-pass Thermomix conversion."""

from typing import List

from dishflow_ai.app.schemas.recipe import Recipe

KNOWLEDGE_BASE = """THERMOMIX KNOWLEDGE BASE

The bowl can: chop or mince (speed 5-10, no heat, 3-10 s bursts); saute or sweat (speed 1-2, 120°C, 3-8 min);
cook soups and sauces (speed 1, 80-100°C); steam with the Varoma (speed 2-3, 120°C); knead dough;
blend or puree (speed 6-10, no heat); melt chocolate or activate yeast (speed 1-2, 37-50°C);
keep warm (speed 1, 60-70°C); whip with the butterfly whisk (speed 3-4, no heat).

The bowl cannot: fry or deep-fry, grill, roast or bake, cook in a pan outside the machine,
plate, garnish, rest or refrigerate. Those are manual steps: mode "", speed "", temp_celsius "", time_seconds 0.

Speed (only when mode is ""): "" = no machine action, "1"-"2" slow stir, "3"-"4" medium, "5"-"7" chopping, "8"-"10" blending.
Temperature (only when mode is ""): "" = no heat, "37" body temperature, "60"-"80" gentle, "90"-"100" simmering,
"120" sauteing or Varoma, "130"-"160" TM6 only.

AUTOMODES (fixed internal speed; when mode is set, speed MUST be ""):
- "dough": kneading bread, pastry or pizza dough, 60-240 s, no temperature
- "turbo": ultra-fast burst, 1-3 s, no temperature
- "blend": smooth blending or pureeing, 60-90 s, no temperature
- "warm_up": gently reheating a finished sauce or soup, time 0, temp_celsius "65"
- "rice_cooker": cooking rice or similar grains, time per recipe, no temperature"""

OUTPUT_FORMAT = """Return ONLY valid JSON, no markdown, no explanation:
{
  "ingredients": ["quantity unit name", ...],
  "steps": [
    {"text": "plain-language instruction", "mode": "", "speed": "5", "time_seconds": 5, "temp_celsius": "", "ingredient_refs": ["exact ingredient string as it appears in text"]}
  ],
  "required_models": ["TM6", "TM5"]
}

STRICT RULES:
- "text" is the human-readable instruction only. Never append speed, temperature, time or mode notation to it.
- When mode is set, speed MUST be "".
- Copy every ingredient string into "text" verbatim and list the same string in "ingredient_refs".
- ingredient_refs never contains times, temperatures or speeds.
- Convert minutes to seconds exactly (20 min -> 1200). Never shorten the original cooking time."""


def format_quantity(value: float) -> str:
    return f"{value:g}"


def ingredient_lines(recipe: Recipe) -> List[str]:
    lines: List[str] = []
    for ingredient in recipe.ingredients:
        line = ingredient.name
        if ingredient.quantity is not None and ingredient.quantity > 0:
            if ingredient.unit:
                line = f"{format_quantity(ingredient.quantity)} {ingredient.unit} {ingredient.name}"
            else:
                line = f"{format_quantity(ingredient.quantity)} {ingredient.name}"
        if ingredient.is_optional:
            line += " (optional)"
        lines.append(f"- {line}")
    return lines


def step_lines(recipe: Recipe) -> List[str]:
    lines: List[str] = []
    for index, step in enumerate(recipe.steps, start=1):
        line = f"{step.step_number or index}. {step.instruction}"
        if step.duration_seconds and step.duration_seconds > 0:
            minutes, seconds = divmod(step.duration_seconds, 60)
            if seconds == 0:
                line += f" [duration: {minutes} min]"
            else:
                line += f" [duration: {minutes}m{seconds}s]"
        if step.temperature:
            line += f" [temperature: {step.temperature}]"
        lines.append(line)
    return lines


def _recipe_block(recipe: Recipe, servings: int) -> str:
    return (
        f"Title: {recipe.title}\n"
        f"Servings: {servings}\n"
        f"Total time: {recipe.total_time_minutes} minutes\n\n"
        "INGREDIENTS:\n" + "\n".join(ingredient_lines(recipe)) + "\n\n"
        "STEPS:\n" + "\n".join(step_lines(recipe))
    )


def build_conversion_prompt(recipe: Recipe, language: str, servings: int) -> str:
    return (
        "You are a certified Thermomix TM6/TM5 recipe developer for Cookidoo.\n"
        "Convert the recipe below into Thermomix format.\n\n"
        f"OUTPUT LANGUAGE: {language}. Write ALL text (ingredients and step text) in {language}.\n\n"
        f"{KNOWLEDGE_BASE}\n\n"
        "For each original step decide whether it can be done in the bowl. If yes, pick an automode or a "
        "speed/temperature/time setting. If not, make it a manual step. If partly, split it into one machine "
        "step and one manual step.\n\n"
        f"RECIPE TO CONVERT\n\n{_recipe_block(recipe, servings)}\n\n"
        f"{OUTPUT_FORMAT}"
    )


def build_review_prompt(recipe: Recipe, language: str, servings: int, first_pass_json: str) -> str:
    return (
        "You are a professional Thermomix TM6 recipe developer with years of Cookidoo publishing experience. "
        "Review, correct and enhance the first-pass conversion below.\n\n"
        f"OUTPUT LANGUAGE: {language}. All text must be in {language}.\n\n"
        f"ORIGINAL RECIPE (source of truth)\n\n{_recipe_block(recipe, servings)}\n\n"
        "A. FIX ingredient_refs: each ref must be an exact substring of its step's text. If the ingredient is "
        "mentioned with different wording, change the ref to match the text; if it is not mentioned, remove it. "
        "If a step clearly uses an ingredient that is missing, rewrite the text to include the exact ingredient "
        "string and add it to ingredient_refs.\n"
        "B. FIX parameter violations: mode set with a speed -> clear speed. Purely manual steps (oven, grill, rest, "
        "refrigerate, plate, serve) -> clear mode, speed and temp_celsius, set time_seconds to 0.\n"
        "C. ENHANCE with TM6 judgment: realistic chopping speeds, gentle temperatures for eggs and custards, "
        "original cooking times unless the machine genuinely differs, \"blend\" for smooth soups, \"dough\" for "
        "all kneading, \"rice_cooker\" for rice and grains.\n\n"
        "Do not reorder, merge or invent steps. Do not change the top-level ingredients list.\n\n"
        f"{KNOWLEDGE_BASE}\n\n"
        f"FIRST-PASS JSON TO REVIEW\n{first_pass_json}\n\n"
        f"{OUTPUT_FORMAT}"
    )
