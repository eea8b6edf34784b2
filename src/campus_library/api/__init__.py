"""HTTP layer: FastAPI application, dependencies and routers."""

from .app import create_app

__all__ = ["create_app"]
