from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from dishflow_ai.app.api.deps import get_recipe_extractor
from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.core.errors import PayloadTooLargeError
from dishflow_ai.app.schemas.extraction import ExtractionRequest, ExtractionResult
from dishflow_ai.app.services.extraction_service import RecipeExtractor

router = APIRouter(prefix="/extract", tags=["extraction"])


class WebpageExtractionRequest(BaseModel):
    url: str
    language: Optional[str] = None
    detail_level: Optional[str] = None


class VideoExtractionRequest(BaseModel):
    video_url: str
    language: Optional[str] = None
    detail_level: Optional[str] = None
    metadata: Optional[str] = None


def build_extraction_request(**fields) -> ExtractionRequest:
    """Validate into an ExtractionRequest, reporting failures like body validation errors."""
    try:
        return ExtractionRequest(**fields)
    except ValidationError as exc:
        errors = [{**err, "loc": ("body", *err.get("loc", ()))} for err in exc.errors(include_url=False)]
        raise RequestValidationError(errors) from exc


@router.post("/webpage", response_model=ExtractionResult)
async def extract_webpage(
    payload: WebpageExtractionRequest,
    extractor: RecipeExtractor = Depends(get_recipe_extractor),
):
    request = build_extraction_request(
        webpage_url=payload.url,
        language=payload.language,
        detail_level=payload.detail_level,
    )
    return await extractor.extract(request)


@router.post("/video", response_model=ExtractionResult)
async def extract_video(
    payload: VideoExtractionRequest,
    extractor: RecipeExtractor = Depends(get_recipe_extractor),
):
    """Extract a recipe from a remote video URL passed to Gemini by reference."""
    request = build_extraction_request(
        video_url=payload.video_url,
        language=payload.language,
        detail_level=payload.detail_level,
        metadata=payload.metadata,
    )
    return await extractor.extract(request)


@router.post("/image", response_model=ExtractionResult)
async def extract_image(
    image: UploadFile = File(...),
    language: Optional[str] = Form(None),
    detail_level: Optional[str] = Form(None),
    extractor: RecipeExtractor = Depends(get_recipe_extractor),
    settings: Settings = Depends(get_settings),
):
    limit = settings.image_upload_max_bytes
    data = await image.read(limit + 1)
    if len(data) > limit:
        raise PayloadTooLargeError(f"image exceeds {limit} bytes")
    request = build_extraction_request(
        image_data=data,
        image_mime_type=image.content_type,
        language=language,
        detail_level=detail_level,
    )
    return await extractor.extract(request)
