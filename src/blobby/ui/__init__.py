"""UI components."""

from .screens.canvas import CanvasScreen
from .widgets.blob import BlobWidget

__all__ = [
    "BlobWidget",
    "CanvasScreen",
]
