import re
from enum import Enum
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dishflow_ai.app.services.url_parsing.parsing_utils import (
    parse_minutes,
    parse_servings,
    sanitize_prompt_string,
)

LANGUAGE_PATTERN = re.compile(r"[a-zA-Z \-()]+")
LANGUAGE_MAX_LENGTH = 50
DETAIL_LEVEL_PATTERN = re.compile(r"[a-zA-Z]+")
DETAIL_LEVEL_MAX_LENGTH = 20
METADATA_MAX_LENGTH = 4000

DEFAULT_LANGUAGE = "English"
DEFAULT_DETAIL_LEVEL = "standard"
SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}

INGREDIENT_CATEGORIES = (
    "dairy",
    "produce",
    "proteins",
    "bakery",
    "pantry",
    "spices",
    "condiments",
    "beverages",
    "snacks",
    "frozen",
    "household",
    "other",
)
DIFFICULTY_LEVELS = ("easy", "medium", "hard")


class SourceKind(str, Enum):
    VIDEO_FILE = "video_file"
    VIDEO_URL = "video_url"
    WEBPAGE = "webpage"
    IMAGE = "image"


class JobStatus(str, Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    EXTRACTING = "extracting"
    FINALIZING = "finalizing"


class ExtractionRequest(BaseModel):
    """A single extraction job: exactly one source plus prompt options.

    ``language`` and ``detail_level`` end up inside the prompt, so they are
    restricted to a narrow alphabet before any network call is made.
    """

    video_path: Optional[Path] = None
    video_url: Optional[str] = None
    webpage_url: Optional[str] = None
    image_data: Optional[bytes] = None
    image_mime_type: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    detail_level: str = DEFAULT_DETAIL_LEVEL
    metadata: str = ""

    @field_validator("language", mode="before")
    @classmethod
    def validate_language(cls, value: Optional[str]) -> str:
        if value is None or value == "":
            return DEFAULT_LANGUAGE
        if len(value) > LANGUAGE_MAX_LENGTH or not LANGUAGE_PATTERN.fullmatch(value):
            raise ValueError("invalid language format")
        return value

    @field_validator("detail_level", mode="before")
    @classmethod
    def validate_detail_level(cls, value: Optional[str]) -> str:
        if value is None or value == "":
            return DEFAULT_DETAIL_LEVEL
        if len(value) > DETAIL_LEVEL_MAX_LENGTH or not DETAIL_LEVEL_PATTERN.fullmatch(value):
            raise ValueError("invalid detail level format")
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def clean_metadata(cls, value: Optional[str]) -> str:
        return sanitize_prompt_string(value)[:METADATA_MAX_LENGTH]

    @field_validator("video_url", "webpage_url")
    @classmethod
    def validate_http_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("URL must start with http or https")
        return value

    @model_validator(mode="after")
    def validate_source(self) -> "ExtractionRequest":
        sources = [
            self.video_path is not None,
            self.video_url is not None,
            self.webpage_url is not None,
            self.image_data is not None,
        ]
        if sum(sources) != 1:
            raise ValueError("exactly one of video_path, video_url, webpage_url or image_data is required")
        if self.image_data is not None:
            if not self.image_data:
                raise ValueError("empty image data")
            if self.image_mime_type not in SUPPORTED_IMAGE_TYPES:
                raise ValueError(f"unsupported image type: {self.image_mime_type}")
        return self

    @property
    def source_kind(self) -> SourceKind:
        if self.video_path is not None:
            return SourceKind.VIDEO_FILE
        if self.video_url is not None:
            return SourceKind.VIDEO_URL
        if self.webpage_url is not None:
            return SourceKind.WEBPAGE
        return SourceKind.IMAGE


def _none_to_empty(value):
    return "" if value is None else value


class ExtractedIngredient(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    quantity: str = ""
    unit: str = ""
    category: str = ""
    section: str = ""
    is_optional: bool = Field(False, alias="isOptional")
    notes: str = ""
    video_timestamp: Optional[float] = Field(None, alias="videoTimestamp")

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, value):
        if isinstance(value, bool):
            return ""
        if isinstance(value, float):
            return str(int(value)) if value.is_integer() else str(value)
        if isinstance(value, int):
            return str(value)
        return _none_to_empty(value)

    @field_validator("unit", "category", "section", "notes", mode="before")
    @classmethod
    def empty_strings(cls, value):
        return _none_to_empty(value)

    @field_validator("is_optional", mode="before")
    @classmethod
    def optional_flag(cls, value):
        return False if value is None else value


class ExtractedStep(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    step_number: int = Field(0, alias="stepNumber")
    instruction: str
    duration_seconds: Optional[int] = Field(None, alias="durationSeconds")
    technique: str = ""
    temperature: str = ""
    video_timestamp_start: Optional[float] = Field(None, alias="videoTimestampStart")
    video_timestamp_end: Optional[float] = Field(None, alias="videoTimestampEnd")

    @field_validator("technique", mode="before")
    @classmethod
    def empty_technique(cls, value):
        return _none_to_empty(value)

    @field_validator("temperature", mode="before")
    @classmethod
    def coerce_temperature(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return _none_to_empty(value)


class RecipeFields(BaseModel):
    """Domain fields shared by the wire envelope and the accepted result."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    description: str = ""
    servings: Optional[int] = None
    prep_time: Optional[int] = Field(None, alias="prepTime")
    cook_time: Optional[int] = Field(None, alias="cookTime")
    difficulty: Optional[str] = None
    cuisine: str = ""
    ingredients: List[ExtractedIngredient] = Field(default_factory=list)
    steps: List[ExtractedStep] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None

    @field_validator("servings", mode="before")
    @classmethod
    def coerce_servings(cls, value):
        return parse_servings(value)

    @field_validator("prep_time", "cook_time", mode="before")
    @classmethod
    def coerce_minutes(cls, value):
        return parse_minutes(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower()
        return lowered if lowered in DIFFICULTY_LEVELS else None

    @field_validator("title", "description", "cuisine", mode="before")
    @classmethod
    def empty_strings(cls, value):
        return _none_to_empty(value)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value):
        if value is None:
            return []
        return value


class ExtractionResult(RecipeFields):
    """A recipe the model accepted as genuine."""

    kind: Literal["recipe"] = "recipe"


class NonRecipe(BaseModel):
    """The model's verdict that the source is not a recipe."""

    kind: Literal["non_recipe"] = "non_recipe"
    reason: str


ExtractionOutcome = Annotated[Union[ExtractionResult, NonRecipe], Field(discriminator="kind")]


class ExtractionEnvelope(RecipeFields):
    """The flat JSON object the model is asked to emit.

    It carries both the recipe fields and the ``non_recipe`` flag; callers
    convert it with :meth:`to_outcome` so the two can never travel together.
    """

    non_recipe: bool = False
    reason: str = ""

    @field_validator("reason", mode="before")
    @classmethod
    def empty_reason(cls, value):
        return _none_to_empty(value)

    def to_outcome(self) -> Union[ExtractionResult, NonRecipe]:
        if self.non_recipe:
            return NonRecipe(reason=self.reason or "content is not a recipe")
        data = self.model_dump(exclude={"non_recipe", "reason"})
        return ExtractionResult.model_validate(data)
