"""Webpage fetching and content extraction package.

This package fetches caller-supplied recipe URLs without reaching internal
hosts and reduces the HTML to text and an image URL for the extraction prompt.
"""

from dishflow_ai.app.services.url_parsing.content_extractor import (
    extract_content,
    find_recipe_image,
    load_json_ld,
    truncate_content,
)
from dishflow_ai.app.services.url_parsing.html_fetcher import (
    SafeResolvingTransport,
    create_safe_http_client,
    fetch_html,
    fetch_webpage,
    is_blocked_address,
)
from dishflow_ai.app.services.url_parsing.models import ExtractedContent, WebpageContent
from dishflow_ai.app.services.url_parsing.parsing_utils import (
    clean_lines,
    clean_text,
    extract_image,
    parse_minutes,
    parse_servings,
    sanitize_prompt_string,
)

__all__ = [
    # Models
    "ExtractedContent",
    "WebpageContent",
    # HTML fetching
    "SafeResolvingTransport",
    "create_safe_http_client",
    "fetch_html",
    "fetch_webpage",
    "is_blocked_address",
    # Content extraction
    "extract_content",
    "find_recipe_image",
    "load_json_ld",
    "truncate_content",
    # Parsing utilities
    "clean_lines",
    "clean_text",
    "extract_image",
    "parse_minutes",
    "parse_servings",
    "sanitize_prompt_string",
]
