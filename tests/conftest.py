import pytest
from fastapi.testclient import TestClient

from dishflow_ai.app.api.deps import get_genai_client, get_recipe_extractor, get_thermomix_converter
from dishflow_ai.app.core.config import Settings
from dishflow_ai.app.main import create_app


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        GEMINI_API_KEY="test-key",
        GEMINI_MODEL="gemini-test",
        VIDEO_POLL_INTERVAL_SECONDS=2.0,
        VIDEO_PROCESSING_TIMEOUT_SECONDS=600.0,
    )


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def override_extractor(app):
    def _override(extractor):
        app.dependency_overrides[get_recipe_extractor] = lambda: extractor

    return _override


@pytest.fixture
def override_converter(app):
    def _override(converter):
        app.dependency_overrides[get_thermomix_converter] = lambda: converter

    return _override


@pytest.fixture
def override_genai(app):
    def _override(fake_client):
        app.dependency_overrides[get_genai_client] = lambda: fake_client

    return _override
