from fastapi import APIRouter, Depends
from google import genai

from dishflow_ai.app.api.deps import get_genai_client
from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.schemas.enrichment import EnrichmentResult
from dishflow_ai.app.schemas.extraction import ExtractionResult
from dishflow_ai.app.services.enrichment import enrich_recipe
from dishflow_ai.app.services.refiner import refine_recipe

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.post("/refine", response_model=ExtractionResult)
async def refine(
    payload: ExtractionResult,
    client: genai.Client = Depends(get_genai_client),
    settings: Settings = Depends(get_settings),
):
    """Second-pass cleanup of an extracted recipe. Never returns fewer ingredients."""
    return await refine_recipe(client, payload, settings)


@router.post("/enrich", response_model=EnrichmentResult)
async def enrich(
    payload: ExtractionResult,
    client: genai.Client = Depends(get_genai_client),
    settings: Settings = Depends(get_settings),
):
    result = await enrich_recipe(client, payload, settings)
    return result.confident()
