"""Pydantic models for webpage fetching and content extraction."""

from typing import Optional

from pydantic import BaseModel


class ExtractedContent(BaseModel):
    """Readable recipe text pulled out of an HTML document."""

    text: str
    title: Optional[str] = None
    image_url: Optional[str] = None
    used_structured_data: bool = False
    truncated: bool = False


class WebpageContent(BaseModel):
    """A fetched page reduced to what the extraction prompt needs."""

    url: str
    final_url: str
    text: str
    title: Optional[str] = None
    image_url: Optional[str] = None
