"""
FastAPI/ASGI application entrypoint.

Run with: uvicorn blinkguard.api_server.app:app --host 0.0.0.0 --port 3000
"""

from blinkguard.api_server.server import app, create_app

__all__ = ["app", "create_app"]
