"""General parsing utilities for recipe extraction."""

import re
from typing import Any, Optional

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")


def clean_text(text: str) -> str:
    """Normalize whitespace in text."""
    return re.sub(r"\s+", " ", text or "").strip()


def clean_lines(text: str, min_length: int = 3) -> str:
    """Strip each line and drop lines shorter than ``min_length``."""
    lines = (line.strip() for line in (text or "").splitlines())
    return "\n".join(line for line in lines if len(line) >= min_length)


def sanitize_prompt_string(value: Optional[str]) -> str:
    """Make a caller-controlled string safe to embed in a prompt.

    Newlines become spaces so the value cannot open a new prompt section;
    other control characters except tab are removed.
    """
    if not value:
        return ""
    flattened = value.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    return _CONTROL_CHARS_RE.sub("", flattened)


def parse_iso8601_duration(duration: str) -> Optional[int]:
    """Parse a minimal ISO-8601 duration string (e.g., PT1H30M) into minutes."""
    if not duration:
        return None
    match = re.fullmatch(r"PT?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?", duration.strip(), flags=re.I)
    if not match:
        return None
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)
    total_minutes = hours * 60 + minutes + (1 if seconds >= 30 else 0)
    return total_minutes or None


def parse_minutes(value) -> Optional[int]:
    """Parse a minutes value from various formats."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        iso_minutes = parse_iso8601_duration(value)
        if iso_minutes is not None:
            return iso_minutes
        match = re.search(r"(\d+)\s*(?:h|hr|hour|hours)\b", value, flags=re.I)
        hours = int(match.group(1)) if match else 0
        match = re.search(r"(\d+)\s*(?:m|min|mins|minute|minutes)\b", value, flags=re.I)
        if match or hours:
            return hours * 60 + (int(match.group(1)) if match else 0)
        match = re.fullmatch(r"\s*(\d+)\s*", value)
        if match:
            return int(match.group(1))
    return None


def parse_servings(value) -> Optional[int]:
    """Parse servings from various formats."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = re.search(r"\d+", value)
        if match:
            return int(match.group())
    return None


def extract_image(value: Any) -> Optional[str]:
    """Extract image URL from various schema.org image formats.

    Handles a plain URL, a list of URLs or ImageObjects, and a single
    ImageObject with a ``url`` field.
    """
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl")
        return url if isinstance(url, str) and url else None
    if isinstance(value, list):
        for item in value:
            found = extract_image(item)
            if found:
                return found
    return None
