"""Fetch commit titles from a GitHub repository within a date range."""

__version__ = "1.0.0"
