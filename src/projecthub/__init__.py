"""ProjectHub identity and project backend."""

from .api import app, create_app

__all__ = ["app", "create_app"]
