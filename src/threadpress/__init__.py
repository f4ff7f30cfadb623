"""Publish forum chat threads as static HTML pages."""

__version__ = "0.1.0"
