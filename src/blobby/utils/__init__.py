"""Utility functions."""

from .text import hyphenate_text, truncate

__all__ = [
    "hyphenate_text",
    "truncate",
]
