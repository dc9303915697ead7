"""Repository layer for data access."""

from .api import ApiRepository
from .local import LocalRepository
from .protocol import TaskRepositoryProtocol

__all__ = [
    "ApiRepository",
    "LocalRepository",
    "TaskRepositoryProtocol",
]
