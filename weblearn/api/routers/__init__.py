"""API router factory functions."""
from .systems import create_systems_router
from .web import create_web_router

__all__ = [
    "create_systems_router",
    "create_web_router",
]
