"""Aggregate files into a single Markdown document for LLM context."""

__version__ = "0.1.0"
