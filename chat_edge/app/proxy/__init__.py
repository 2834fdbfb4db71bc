"""
Proxy Package
=============

This package implements the authenticated chat endpoint that forwards
conversations to the inference backend and streams the reply back.

Main Components:
----------------
- routes.py: Router factory with the chat endpoint and API 405/404 answers
- relay.py: Event-stream response relaying backend chunks unbuffered

Usage:
------
    from chat_edge.app.proxy import create_proxy_router
    app.include_router(create_proxy_router(settings))
"""

from .relay import EventStreamResponse, relay_stream
from .routes import create_proxy_router

__all__ = ["EventStreamResponse", "create_proxy_router", "relay_stream"]
