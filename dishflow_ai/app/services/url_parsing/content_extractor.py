"""Reduce a recipe page's HTML to readable text and a representative image."""

import json
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Comment

from dishflow_ai.app.services.url_parsing.models import ExtractedContent
from dishflow_ai.app.services.url_parsing.parsing_utils import clean_lines, clean_text, extract_image

logger = logging.getLogger(__name__)

NON_CONTENT_SELECTORS = (
    "script, style, nav, footer, header, aside, .sidebar, .advertisement, "
    ".ads, .comments, .social-share, noscript, iframe"
)
RECIPE_CONTAINER_SELECTORS = [
    ".recipe",
    ".recipe-content",
    ".recipe-card",
    "[itemtype*='Recipe']",
    "[class*='recipe']",
    ".ingredients",
    ".instructions",
    ".directions",
    "article",
    "main",
    ".post-content",
    ".entry-content",
]
MIN_CONTAINER_TEXT_LENGTH = 100
DEFAULT_MAX_CHARS = 50_000
TRUNCATION_MARKER = "\n[Content truncated...]"


def load_json_ld(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    """Return every JSON-LD object on the page, with ``@graph`` entries flattened."""
    objects: List[Dict[str, Any]] = []
    for idx, script in enumerate(soup.find_all("script", attrs={"type": "application/ld+json"})):
        raw_json = script.string or script.get_text()
        if not raw_json or not raw_json.strip():
            continue
        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            logger.warning("JSON-LD block %d failed to parse: %s (first 200 chars: %s)", idx, exc, raw_json[:200])
            continue
        pending = data if isinstance(data, list) else [data]
        for item in pending:
            if not isinstance(item, dict):
                continue
            graph = item.get("@graph")
            if isinstance(graph, list):
                objects.extend(obj for obj in graph if isinstance(obj, dict))
            objects.append(item)
    return objects


def is_recipe_object(obj: Dict[str, Any]) -> bool:
    obj_type = obj.get("@type")
    types = [obj_type] if isinstance(obj_type, str) else obj_type or []
    return any(str(t).lower() == "recipe" for t in types)


def find_recipe_image(soup: BeautifulSoup, recipes: List[Dict[str, Any]]) -> Optional[str]:
    """Pick the page image: og:image, then twitter:image, then JSON-LD fields."""
    for selector in ("meta[property='og:image']", "meta[name='twitter:image']"):
        tag = soup.select_one(selector)
        if tag is not None:
            content = (tag.get("content") or "").strip()
            if content:
                return content
    for recipe in recipes:
        found = extract_image(recipe.get("thumbnailUrl")) or extract_image(recipe.get("image"))
        if found:
            return found
    return None


def _page_title(soup: BeautifulSoup) -> Optional[str]:
    heading = soup.find("h1")
    if heading is not None:
        text = clean_text(heading.get_text(" "))
        if text:
            return text
    if soup.title is not None:
        text = clean_text(soup.title.get_text(" "))
        if text:
            return text
    return None


def _strip_non_content(soup: BeautifulSoup) -> None:
    for element in soup.select(NON_CONTENT_SELECTORS):
        element.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()


def _container_text(soup: BeautifulSoup) -> Optional[str]:
    for selector in RECIPE_CONTAINER_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = clean_lines(element.get_text("\n"))
        if len(text) > MIN_CONTAINER_TEXT_LENGTH:
            logger.debug("Using recipe container %s (%d chars)", selector, len(text))
            return text
    return None


def truncate_content(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> tuple[str, bool]:
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars] + TRUNCATION_MARKER, True


def extract_content(html: str, max_chars: int = DEFAULT_MAX_CHARS) -> ExtractedContent:
    """Extract prompt-ready recipe text from ``html``.

    Structured recipe data is captured before scripts are stripped and wins
    when present; otherwise the first recipe-looking container with enough
    text is used, and finally the whole body.
    """
    soup = BeautifulSoup(html, "lxml")
    recipes = [obj for obj in load_json_ld(soup) if is_recipe_object(obj)]
    image_url = find_recipe_image(soup, recipes)
    title = _page_title(soup)

    _strip_non_content(soup)

    parts: List[str] = []
    if title:
        parts.append(f"Title: {title}")
    if recipes:
        schema_text = "\n".join(json.dumps(recipe, ensure_ascii=False, indent=2) for recipe in recipes)
        parts.append(f"[Recipe Schema Data]\n{schema_text}")
    else:
        body_text = _container_text(soup)
        if body_text is None:
            root = soup.body or soup
            body_text = clean_lines(root.get_text("\n"))
        parts.append(body_text)

    text, truncated = truncate_content("\n\n".join(parts), max_chars)
    return ExtractedContent(
        text=text,
        title=title,
        image_url=image_url,
        used_structured_data=bool(recipes),
        truncated=truncated,
    )
