"""API package for the local scan surface."""

from .app import create_app, get_app

__all__ = ["create_app", "get_app"]
