from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from dishflow_ai.app.schemas.extraction import ExtractionResult
from dishflow_ai.app.services.quantity_parser import parse_quantity


class RecipeIngredient(BaseModel):
    name: str
    quantity: Optional[float] = None
    unit: str = ""
    is_optional: bool = False
    notes: str = ""
    section: str = ""


class RecipeStep(BaseModel):
    step_number: int = 0
    instruction: str
    duration_seconds: Optional[int] = None
    temperature: str = ""


class Recipe(BaseModel):
    """A stored recipe as handed to the Thermomix converter."""

    title: str
    description: str = ""
    servings: Optional[int] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    content_language: str = ""
    thumbnail_url: Optional[str] = None
    ingredients: List[RecipeIngredient] = Field(default_factory=list)
    steps: List[RecipeStep] = Field(default_factory=list)

    @field_validator("ingredients")
    @classmethod
    def validate_ingredients(cls, value: List[RecipeIngredient]) -> List[RecipeIngredient]:
        if not value:
            raise ValueError("At least one ingredient is required")
        return value

    @field_validator("steps")
    @classmethod
    def validate_steps(cls, value: List[RecipeStep]) -> List[RecipeStep]:
        if not value:
            raise ValueError("At least one step is required")
        return value

    @property
    def total_time_minutes(self) -> int:
        return (self.prep_time or 0) + (self.cook_time or 0)

    @classmethod
    def from_extraction(cls, result: ExtractionResult, content_language: str = "") -> "Recipe":
        ingredients = [
            RecipeIngredient(
                name=ingredient.name,
                quantity=parse_quantity(ingredient.quantity),
                unit=ingredient.unit,
                is_optional=ingredient.is_optional,
                notes=ingredient.notes,
                section=ingredient.section,
            )
            for ingredient in result.ingredients
        ]
        steps = [
            RecipeStep(
                step_number=step.step_number or index,
                instruction=step.instruction,
                duration_seconds=step.duration_seconds,
                temperature=step.temperature,
            )
            for index, step in enumerate(result.steps, start=1)
        ]
        return cls(
            title=result.title,
            description=result.description,
            servings=result.servings,
            prep_time=result.prep_time,
            cook_time=result.cook_time,
            content_language=content_language,
            thumbnail_url=result.thumbnail,
            ingredients=ingredients,
            steps=steps,
        )
