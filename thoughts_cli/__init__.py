"""Thoughts CLI - a separate notes repository linked into code repositories."""

__version__ = "0.1.0"
