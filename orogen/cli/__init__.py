"""Command line interface for oroGen."""

from .app import app

__all__ = ["app"]
