from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from dishflow_ai.app.api.deps import get_thermomix_converter
from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.schemas.cookidoo import ThermomixRecipe
from dishflow_ai.app.schemas.recipe import Recipe
from dishflow_ai.app.schemas.thermomix import ThermomixConversionResult
from dishflow_ai.app.services.thermomix.compiler import build_thermomix_recipe
from dishflow_ai.app.services.thermomix.converter import ThermomixConverter

router = APIRouter(prefix="/thermomix", tags=["thermomix"])


class ThermomixConvertRequest(BaseModel):
    recipe: Recipe
    language: Optional[str] = None


class ThermomixConvertResponse(BaseModel):
    conversion: ThermomixConversionResult
    cookidoo_recipe: ThermomixRecipe


@router.post("/convert", response_model=ThermomixConvertResponse)
async def convert(
    payload: ThermomixConvertRequest,
    converter: ThermomixConverter = Depends(get_thermomix_converter),
    settings: Settings = Depends(get_settings),
):
    conversion = await converter.convert(payload.recipe)
    return ThermomixConvertResponse(
        conversion=conversion,
        cookidoo_recipe=build_thermomix_recipe(
            payload.recipe, conversion, payload.language, settings.default_thermomix_language
        ),
    )
