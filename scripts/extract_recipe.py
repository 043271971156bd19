#!/usr/bin/env python
"""
Run a single recipe extraction from the command line and print JSON.

Examples:
    python scripts/extract_recipe.py --webpage-url https://example.com/lasagna
    python scripts/extract_recipe.py --video-path ./clip.mp4 --refine --enrich --thermomix
"""
import argparse
import asyncio
import json
import logging
import mimetypes
import sys
from pathlib import Path

from dishflow_ai.app.core.config import get_settings
from dishflow_ai.app.core.errors import DishflowError
from dishflow_ai.app.schemas.extraction import ExtractionRequest
from dishflow_ai.app.schemas.recipe import Recipe
from dishflow_ai.app.services.enrichment import apply_servings_estimate, enrich_recipe
from dishflow_ai.app.services.extraction_service import RecipeExtractor
from dishflow_ai.app.services.llm_client import create_genai_client
from dishflow_ai.app.services.refiner import refine_recipe
from dishflow_ai.app.services.thermomix.compiler import build_thermomix_recipe
from dishflow_ai.app.services.thermomix.converter import ThermomixConverter
from dishflow_ai.app.services.url_parsing.html_fetcher import create_safe_http_client

logging.basicConfig(level=logging.INFO, stream=sys.stderr)
logger = logging.getLogger("extract_recipe")


def parse_args():
    parser = argparse.ArgumentParser(description="Extract a recipe with Gemini")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--video-path")
    source.add_argument("--video-url")
    source.add_argument("--webpage-url")
    source.add_argument("--image-path")
    parser.add_argument("--language", default=None)
    parser.add_argument("--detail-level", default=None)
    parser.add_argument("--metadata", default=None)
    parser.add_argument("--refine", action="store_true")
    parser.add_argument("--enrich", action="store_true", help="add nutrition and dietary estimates")
    parser.add_argument("--thermomix", action="store_true", help="also convert to a Cookidoo payload")
    parser.add_argument("--content-language", default="", help="language code for the Thermomix output")
    return parser.parse_args()


def build_request(args) -> ExtractionRequest:
    fields = {
        "language": args.language,
        "detail_level": args.detail_level,
        "metadata": args.metadata,
    }
    if args.image_path:
        image_path = Path(args.image_path)
        fields["image_data"] = image_path.read_bytes()
        fields["image_mime_type"] = mimetypes.guess_type(image_path.name)[0]
    elif args.video_path:
        fields["video_path"] = Path(args.video_path)
    elif args.video_url:
        fields["video_url"] = args.video_url
    else:
        fields["webpage_url"] = args.webpage_url
    return ExtractionRequest(**fields)


def report_progress(status, progress, message):
    logger.info("[%3d%%] %s: %s", progress, status.value, message)


async def main():
    args = parse_args()
    request = build_request(args)
    settings = get_settings()
    client = create_genai_client(settings)

    async with create_safe_http_client(settings) as http_client:
        extractor = RecipeExtractor(client, http_client, settings)
        result = await extractor.extract(request, on_progress=report_progress)

    if args.refine:
        result = await refine_recipe(client, result, settings)

    enrichment = None
    if args.enrich:
        try:
            enrichment = (await enrich_recipe(client, result, settings)).confident()
        except DishflowError as exc:
            logger.warning("Enrichment failed, continuing without it: %s", exc.message)
        else:
            result = apply_servings_estimate(result, enrichment)

    output = {"recipe": result.model_dump(mode="json", by_alias=True)}
    if enrichment is not None:
        output["enrichment"] = enrichment.model_dump(mode="json", by_alias=True)
    if args.thermomix:
        recipe = Recipe.from_extraction(result, content_language=args.content_language)
        conversion = await ThermomixConverter(client, settings).convert(recipe)
        output["thermomix"] = conversion.model_dump(mode="json")
        output["cookidoo_recipe"] = build_thermomix_recipe(
            recipe, conversion, default_language=settings.default_thermomix_language
        ).model_dump(mode="json", by_alias=True)

    # stdout must be JSON only
    print(json.dumps(output, ensure_ascii=False))


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except DishflowError as exc:
        print(json.dumps({"error_code": exc.error_code, "error": exc.message}))
        sys.exit(1)
    except ValueError as exc:
        print(json.dumps({"error_code": "validation_error", "error": str(exc)}))
        sys.exit(1)
