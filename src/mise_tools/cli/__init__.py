"""Command line interface for mise-tools."""

from .main import app

__all__ = ["app"]
