"""Blobby - tasks as draggable blobs on a canvas."""

__version__ = "0.1.0"
