"""
Application Factory Tests
=========================

Tests for chat_edge/app/main.py (lifespan wiring and exception handlers)
"""

from unittest.mock import patch

from fastapi import status
from fastapi.testclient import TestClient

from chat_edge.app.inference import InferenceClient
from chat_edge.app.main import create_app
from chat_edge.app.tests.fakes import FakeInferenceClient, make_settings


def test_lifespan_creates_and_closes_inference_client():
    app = create_app(make_settings())

    with TestClient(app):
        client = app.state.inference_client
        assert isinstance(client, InferenceClient)

    assert app.state.inference_client is None


def test_lifespan_keeps_injected_client():
    fake = FakeInferenceClient()
    app = create_app(make_settings(), inference_client=fake)

    with TestClient(app):
        assert app.state.inference_client is fake

    assert app.state.inference_client is fake


def test_lifespan_logs_configuration_warnings(caplog):
    app = create_app(make_settings(CHAT_API_KEY="short"), inference_client=FakeInferenceClient())

    with caplog.at_level("WARNING", logger="chat_edge.main"):
        with TestClient(app):
            pass

    assert any("CHAT_API_KEY is shorter" in record.getMessage() for record in caplog.records)


def test_factory_loads_settings_when_not_given():
    settings = make_settings()

    with patch("chat_edge.app.main.get_settings", return_value=settings) as mock_get:
        app = create_app(inference_client=FakeInferenceClient())

    mock_get.assert_called_once()
    assert app.state.settings is settings


def test_docs_are_not_exposed(client):
    assert client.get("/docs").status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/openapi.json").status_code == status.HTTP_404_NOT_FOUND
