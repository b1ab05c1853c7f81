"""Guidesmith: scope, research and draft practical guides."""

__version__ = "0.1.0"
