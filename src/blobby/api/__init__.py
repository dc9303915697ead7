"""REST client for the Blobby task store."""

from .client import BlobbyApiClient

__all__ = [
    "BlobbyApiClient",
]
