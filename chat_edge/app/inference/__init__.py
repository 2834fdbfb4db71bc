"""
Inference Package
=================

Client for the hosted model-serving backend (Workers AI REST API).

Main Components:
----------------
- client.py: InferenceClient opening streamed model runs, InferenceStream
  wrapping the open upstream response
"""

from .client import InferenceClient, InferenceStream, create_http_client

__all__ = ["InferenceClient", "InferenceStream", "create_http_client"]
