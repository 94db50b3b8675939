"""HTTP adapter (FastAPI) over the moderation core."""

from modcore.web.app import create_app

__all__ = ["create_app"]
