import httpx
from fastapi import Depends, Request
from google import genai

from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.core.errors import AIUnavailableError
from dishflow_ai.app.services.extraction_service import RecipeExtractor
from dishflow_ai.app.services.thermomix.converter import ThermomixConverter


def get_genai_client(request: Request) -> genai.Client:
    client = getattr(request.app.state, "genai_client", None)
    if client is None:
        raise AIUnavailableError("GEMINI_API_KEY is not configured.")
    return client


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_recipe_extractor(
    client: genai.Client = Depends(get_genai_client),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> RecipeExtractor:
    return RecipeExtractor(client, http_client, settings)


def get_thermomix_converter(
    client: genai.Client = Depends(get_genai_client),
    settings: Settings = Depends(get_settings),
) -> ThermomixConverter:
    return ThermomixConverter(client, settings)
