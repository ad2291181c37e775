"""Viewer for large tiled scans with zoom, rotation and theta blending."""

__version__ = "0.1.0"