"""Batch image transcoding and resizing service."""

__version__ = "0.1.0"
