"""Screen components."""

from .canvas import CanvasScreen
from .help import HelpScreen

__all__ = [
    "CanvasScreen",
    "HelpScreen",
]
