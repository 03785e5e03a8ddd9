"""FastAPI relay that forwards browser requests to AI and search APIs with server-held credentials."""

from .main import app, create_app

__all__ = ["app", "create_app"]
