import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    gemini_api_key: str | None = Field(None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_thermomix_temperature: float = Field(0.1, alias="GEMINI_THERMOMIX_TEMPERATURE")
    scraper_user_agent: str = Field(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        alias="SCRAPER_USER_AGENT",
    )
    web_fetch_timeout_seconds: float = Field(45.0, alias="WEB_FETCH_TIMEOUT_SECONDS")
    web_fetch_connect_timeout_seconds: float = Field(10.0, alias="WEB_FETCH_CONNECT_TIMEOUT_SECONDS")
    web_fetch_max_bytes: int = Field(5 * 1024 * 1024, alias="WEB_FETCH_MAX_BYTES")
    web_fetch_max_redirects: int = Field(10, alias="WEB_FETCH_MAX_REDIRECTS")
    web_content_max_chars: int = Field(50_000, alias="WEB_CONTENT_MAX_CHARS")
    image_upload_max_bytes: int = Field(10 * 1024 * 1024, alias="IMAGE_UPLOAD_MAX_BYTES")
    # Upload polling for local video files
    video_poll_interval_seconds: float = Field(2.0, alias="VIDEO_POLL_INTERVAL_SECONDS")
    video_processing_timeout_seconds: float = Field(600.0, alias="VIDEO_PROCESSING_TIMEOUT_SECONDS")
    default_thermomix_language: str = Field("fr", alias="DEFAULT_THERMOMIX_LANGUAGE")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    return settings
