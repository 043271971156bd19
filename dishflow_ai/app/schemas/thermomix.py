from typing import List

from pydantic import BaseModel, Field, field_validator

AUTOMODES = ("dough", "turbo", "blend", "warm_up", "rice_cooker")
DEFAULT_REQUIRED_MODELS = ["TM6", "TM5"]


def _as_setting(value) -> str:
    """Speed and temperature arrive as strings, numbers or null."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, int):
        return str(value)
    return str(value).strip()


class ThermomixStep(BaseModel):
    text: str
    mode: str = ""
    speed: str = ""
    time_seconds: int = 0
    temp_celsius: str = ""
    ingredient_refs: List[str] = Field(default_factory=list)

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, value):
        return "" if value is None else str(value).strip().lower()

    @field_validator("speed", "temp_celsius", mode="before")
    @classmethod
    def normalize_setting(cls, value):
        return _as_setting(value)

    @field_validator("time_seconds", mode="before")
    @classmethod
    def normalize_time(cls, value):
        if value is None or value == "":
            return 0
        if isinstance(value, float):
            return int(value)
        return value

    @field_validator("ingredient_refs", mode="before")
    @classmethod
    def normalize_refs(cls, value):
        return [] if value is None else value


class ThermomixConversionResult(BaseModel):
    ingredients: List[str] = Field(default_factory=list)
    steps: List[ThermomixStep] = Field(default_factory=list)
    required_models: List[str] = Field(default_factory=list)

    @field_validator("ingredients", "required_models", mode="before")
    @classmethod
    def normalize_lists(cls, value):
        return [] if value is None else value
