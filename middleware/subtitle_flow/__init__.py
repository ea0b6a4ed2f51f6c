"""Subtitle Flow - concurrent line translation for subtitle files."""

__version__ = "1.0.0"
