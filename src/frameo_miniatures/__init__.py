"""Prepare and optimize photos for Frameo digital photo frames."""

__version__ = "0.1.0"
