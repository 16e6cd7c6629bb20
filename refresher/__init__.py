"""Refresher — patch games to connect to custom servers."""

__version__ = "0.1.0"
