"""
HTTP surface for Flowkit (FastAPI).
"""

from .app import build_store, create_app
from .routes import router

__all__ = ["build_store", "create_app", "router"]
