"""Hybrid static + AI code quality analysis."""

__version__ = "0.1.0"
