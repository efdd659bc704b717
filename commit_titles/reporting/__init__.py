"""Renderers and writers for commit listings."""
