"""Configuration."""

from .settings import ServerSettings, Settings

__all__ = [
    "ServerSettings",
    "Settings",
]
