"""HTTP API for the matching service."""

from .app import API_PREFIX, API_VERSION, create_app

__all__ = ["create_app", "API_PREFIX", "API_VERSION"]
