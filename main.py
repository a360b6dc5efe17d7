"""ASGI entrypoint: ``hypercorn main:app`` or ``uvicorn main:app``."""

from server.app import app

__all__ = ["app"]
