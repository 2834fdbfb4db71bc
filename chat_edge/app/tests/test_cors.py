"""
Unit Tests for Origin Resolution and Preflight
==============================================

Tests for chat_edge/app/cors.py

Run tests:
----------
    pytest chat_edge/app/tests/test_cors.py -v
"""

import pytest
from fastapi import status

from chat_edge.app.cors import build_cors_headers, resolve_origin
from chat_edge.app.tests.fakes import DEFAULT_ORIGIN, SECOND_ORIGIN

ALLOWED = (DEFAULT_ORIGIN, SECOND_ORIGIN)


# ============================================================================
# Origin Resolver
# ============================================================================

@pytest.mark.parametrize("origin", ALLOWED)
def test_listed_origin_is_echoed(origin):
    assert resolve_origin(origin, ALLOWED) == origin


@pytest.mark.parametrize(
    "origin",
    ["", "https://evil.example.com", "null", DEFAULT_ORIGIN + "/", DEFAULT_ORIGIN.upper()],
)
def test_unlisted_origin_falls_back_to_first_entry(origin):
    assert resolve_origin(origin, ALLOWED) == DEFAULT_ORIGIN


def test_cors_headers_contain_fixed_methods_and_headers():
    headers = build_cors_headers(SECOND_ORIGIN, ALLOWED)

    assert headers["Access-Control-Allow-Origin"] == SECOND_ORIGIN
    assert headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert headers["Access-Control-Allow-Headers"] == "Content-Type, x-api-key"
    assert headers["Vary"] == "Origin"


# ============================================================================
# Preflight Responder
# ============================================================================

@pytest.mark.parametrize("path", ["/api/chat", "/", "/index.html", "/api/unknown", "/unknown/path"])
def test_options_returns_204_on_any_path(client, fake_inference, path):
    response = client.options(path, headers={"Origin": SECOND_ORIGIN})

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == SECOND_ORIGIN
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type, x-api-key"
    assert fake_inference.calls == []


def test_options_without_origin_echoes_default(client):
    response = client.options("/api/chat")

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert response.headers["access-control-allow-origin"] == DEFAULT_ORIGIN


def test_options_response_varies_on_origin(client):
    """Preflight answers differ per Origin, so shared caches must key on it"""
    response = client.options("/api/chat", headers={"Origin": SECOND_ORIGIN})

    assert response.headers["vary"] == "Origin"
    assert "content-type" not in response.headers


def test_options_skips_authentication(client):
    """Preflight never carries x-api-key, so it must not be rejected"""
    response = client.options(
        "/api/chat",
        headers={
            "Origin": DEFAULT_ORIGIN,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type, x-api-key",
        },
    )

    assert response.status_code == status.HTTP_204_NO_CONTENT
