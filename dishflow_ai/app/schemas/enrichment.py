from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_CONFIDENCE_THRESHOLD = 0.5

NUTRITION_TAGS = ("high-protein", "low-carb", "low-fat", "high-fiber", "low-calorie", "moderate-carb")
ALLERGENS = ("dairy", "eggs", "gluten", "nuts", "peanuts", "soy", "shellfish", "fish", "sesame")
MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack", "dessert")


def _known_values(value, allowed):
    if not value:
        return []
    cleaned = []
    for item in value:
        if not isinstance(item, str):
            continue
        lowered = item.strip().lower()
        if lowered in allowed and lowered not in cleaned:
            cleaned.append(lowered)
    return cleaned


def _round_number(value):
    if isinstance(value, float):
        return round(value)
    return value


class NutritionValues(BaseModel):
    """Per-serving amounts: grams, except calories (kcal) and sodium (mg)."""

    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    fiber: Optional[int] = None
    sugar: Optional[int] = None
    sodium: Optional[int] = None

    @field_validator("*", mode="before")
    @classmethod
    def round_amounts(cls, value):
        return _round_number(value)


class NutritionEstimate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    per_serving: NutritionValues = Field(default_factory=NutritionValues, alias="perServing")
    tags: List[str] = Field(default_factory=list)
    confidence: float = 0.0

    @field_validator("tags", mode="before")
    @classmethod
    def known_tags(cls, value):
        return _known_values(value, NUTRITION_TAGS)


class DietaryInfo(BaseModel):
    """Dietary flags; ``None`` means the model could not tell."""

    model_config = ConfigDict(populate_by_name=True)

    is_vegetarian: Optional[bool] = Field(None, alias="isVegetarian")
    is_vegan: Optional[bool] = Field(None, alias="isVegan")
    is_gluten_free: Optional[bool] = Field(None, alias="isGlutenFree")
    is_dairy_free: Optional[bool] = Field(None, alias="isDairyFree")
    is_nut_free: Optional[bool] = Field(None, alias="isNutFree")
    is_keto: Optional[bool] = Field(None, alias="isKeto")
    is_halal: Optional[bool] = Field(None, alias="isHalal")
    is_kosher: Optional[bool] = Field(None, alias="isKosher")
    allergens: List[str] = Field(default_factory=list)
    meal_types: List[str] = Field(default_factory=list, alias="mealTypes")
    confidence: float = 0.0

    @field_validator("allergens", mode="before")
    @classmethod
    def known_allergens(cls, value):
        return _known_values(value, ALLERGENS)

    @field_validator("meal_types", mode="before")
    @classmethod
    def known_meal_types(cls, value):
        return _known_values(value, MEAL_TYPES)


class ServingsEstimate(BaseModel):
    value: int = 0
    confidence: float = 0.0
    reasoning: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def round_value(cls, value):
        return _round_number(value)


class EnrichmentResult(BaseModel):
    """Nutrition and dietary analysis of a recipe, plus a servings guess when unknown."""

    model_config = ConfigDict(populate_by_name=True)

    nutrition: Optional[NutritionEstimate] = None
    dietary_info: Optional[DietaryInfo] = Field(None, alias="dietaryInfo")
    servings_estimate: Optional[ServingsEstimate] = Field(None, alias="servingsEstimate")

    def confident(self, threshold: float = MIN_CONFIDENCE_THRESHOLD) -> "EnrichmentResult":
        """Drop every section whose confidence is below ``threshold``."""
        servings = self.servings_estimate
        if servings is not None and (servings.confidence < threshold or servings.value <= 0):
            servings = None
        nutrition = self.nutrition
        if nutrition is not None and nutrition.confidence < threshold:
            nutrition = None
        dietary = self.dietary_info
        if dietary is not None and dietary.confidence < threshold:
            dietary = None
        return EnrichmentResult(nutrition=nutrition, dietary_info=dietary, servings_estimate=servings)
