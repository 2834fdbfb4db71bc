"""
Chat Edge Proxy
===============

HTTP edge proxy for browser chat clients.

Features:
    - Allow-list based CORS with a single echoed origin
    - CORS preflight answered on every path
    - Shared-secret authentication via the x-api-key header
    - Default system prompt injection
    - Unbuffered relay of the inference backend's event stream
    - Uniform 500 error envelope without detail leakage

Entry point: chat_edge.app.main:create_app
"""
