"""Markdown task engine: tasks kept as checklist items in a Markdown document."""

__version__ = "0.1.0"
