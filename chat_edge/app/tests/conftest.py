"""
Shared fixtures for edge proxy tests.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from chat_edge.app.inference import InferenceClient
from chat_edge.app.main import create_app
from chat_edge.app.tests.fakes import (
    API_KEY,
    DEFAULT_ORIGIN,
    FakeInferenceClient,
    RecordingBackend,
    make_settings,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def fake_inference():
    return FakeInferenceClient()


@pytest.fixture
def client(settings, fake_inference):
    """TestClient over an app wired to the fake inference client"""
    app = create_app(settings, inference_client=fake_inference)
    return TestClient(app)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def backend_client(settings, backend):
    """TestClient over an app whose real InferenceClient talks to a mock transport"""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    app = create_app(settings, inference_client=InferenceClient(http_client, settings))
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {
        "x-api-key": API_KEY,
        "Origin": DEFAULT_ORIGIN,
        "Content-Type": "application/json",
    }
