"""Payload models for the Cookidoo created-recipes API."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnnotationTemperature(BaseModel):
    value: str
    unit: str = "C"


class AnnotationData(BaseModel):
    speed: Optional[str] = None
    time: Optional[int] = None
    temperature: Optional[AnnotationTemperature] = None
    description: Optional[str] = None


class AnnotationPosition(BaseModel):
    offset: int
    length: int


class StepAnnotation(BaseModel):
    type: Literal["INGREDIENT", "TTS", "MODE"]
    name: Optional[str] = None
    data: AnnotationData = Field(default_factory=AnnotationData)
    position: AnnotationPosition


class RecipeItem(BaseModel):
    type: Literal["INGREDIENT", "STEP"]
    text: str
    annotations: List[StepAnnotation] = Field(default_factory=list)


class RecipeYield(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: int
    unit_text: str = Field("portion", alias="unitText")


class ThermomixRecipe(BaseModel):
    """PATCH body for a Cookidoo created recipe. Times are in seconds."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    ingredients: List[RecipeItem] = Field(default_factory=list)
    instructions: List[RecipeItem] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    recipe_yield: Optional[RecipeYield] = Field(None, alias="yield")
    total_time: int = Field(0, alias="totalTime")
    prep_time: int = Field(0, alias="prepTime")
    language: str = "fr"
    thumbnail_url: Optional[str] = Field(None, exclude=True)
