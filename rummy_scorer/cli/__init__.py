"""Command line interface for the rummy score keeper."""

from .main import app, main

__all__ = ["app", "main"]
