"""Command line interface for javabridge."""

from .main import app

__all__ = ["app"]
