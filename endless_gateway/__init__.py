"""Endless Gateway API: authenticated proxy in front of the Endless services."""
from .app import create_app
from .config import Settings

__all__ = ["create_app", "Settings"]
